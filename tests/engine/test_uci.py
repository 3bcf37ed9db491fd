"""Tests for the UCI engine adapter (python-chess engine faked)."""

from __future__ import annotations

import chess
import chess.engine
import pytest

from chessreview.engine.interfaces import EngineError
from chessreview.engine.uci import UciEngine, format_score

START = chess.STARTING_FEN


def _info(score: chess.engine.Score, *pv: str) -> chess.engine.InfoDict:
    return {
        "score": chess.engine.PovScore(score, chess.WHITE),
        "pv": [chess.Move.from_uci(uci) for uci in pv],
    }


class _FakeSimpleEngine:
    def __init__(
        self,
        infos: list[chess.engine.InfoDict] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self._infos = infos or []
        self._error = error
        self.limits: list[chess.engine.Limit] = []
        self.multipv: list[int | None] = []
        self.quit_calls = 0

    def analyse(
        self,
        board: chess.Board,
        limit: chess.engine.Limit,
        multipv: int | None = None,
    ) -> object:
        del board
        self.limits.append(limit)
        self.multipv.append(multipv)
        if self._error is not None:
            raise self._error
        if multipv is None:
            return self._infos[0]
        return self._infos[:multipv]

    def quit(self) -> None:
        self.quit_calls += 1


def _engine(fake: _FakeSimpleEngine) -> UciEngine:
    return UciEngine("fake-engine", factory=lambda _path: fake)


class TestFormatScore:
    def test_centipawns(self) -> None:
        assert format_score(chess.engine.Cp(34)) == "0.34"
        assert format_score(chess.engine.Cp(-150)) == "-1.50"

    def test_mate(self) -> None:
        assert format_score(chess.engine.Mate(3)) == "mate 3"
        assert format_score(chess.engine.Mate(-2)) == "mate -2"


class TestEvaluate:
    def test_score_and_best_move(self) -> None:
        fake = _FakeSimpleEngine([_info(chess.engine.Cp(25), "e2e4", "e7e5")])

        result = _engine(fake).evaluate(START, 12)

        assert result.score == "0.25"
        assert result.best_move == "e2e4"
        assert fake.limits[0].depth == 12

    def test_missing_pv_gives_no_best_move(self) -> None:
        fake = _FakeSimpleEngine([_info(chess.engine.Mate(-1))])
        result = _engine(fake).evaluate(START, 10)
        assert result.score == "mate -1"
        assert result.best_move is None

    def test_engine_starts_lazily_once(self) -> None:
        started: list[str] = []
        fake = _FakeSimpleEngine([_info(chess.engine.Cp(0), "e2e4")])

        def factory(path: str) -> _FakeSimpleEngine:
            started.append(path)
            return fake

        engine = UciEngine("sf", factory=factory)
        assert started == []
        engine.evaluate(START, 5)
        engine.evaluate(START, 5)
        assert started == ["sf"]

    def test_missing_binary_raises_engine_error(self) -> None:
        def factory(_path: str) -> _FakeSimpleEngine:
            raise FileNotFoundError("no such file")

        with pytest.raises(EngineError):
            UciEngine("missing", factory=factory).evaluate(START, 5)

    def test_terminated_engine_raises_engine_error(self) -> None:
        fake = _FakeSimpleEngine(error=chess.engine.EngineTerminatedError("gone"))
        with pytest.raises(EngineError):
            _engine(fake).evaluate(START, 5)

    def test_invalid_fen_raises_engine_error(self) -> None:
        fake = _FakeSimpleEngine([_info(chess.engine.Cp(0))])
        with pytest.raises(EngineError):
            _engine(fake).evaluate("not a fen", 5)

    def test_reply_without_score_raises_engine_error(self) -> None:
        fake = _FakeSimpleEngine([{"pv": [chess.Move.from_uci("e2e4")]}])
        with pytest.raises(EngineError):
            _engine(fake).evaluate(START, 5)


class TestEvaluateMultiPv:
    def test_ranked_lines(self) -> None:
        fake = _FakeSimpleEngine(
            [
                _info(chess.engine.Cp(30), "e2e4", "e7e5"),
                _info(chess.engine.Cp(25), "d2d4", "d7d5"),
                _info(chess.engine.Cp(20), "c2c4"),
            ]
        )

        result = _engine(fake).evaluate_multipv(START, 14, 2)

        assert fake.multipv == [2]
        assert result.score == "0.30"
        assert result.best_move == "e2e4"
        assert [line.move for line in result.lines] == ["e2e4", "d2d4"]
        assert result.lines[1].pv == ("d2d4", "d7d5")

    def test_no_lines_raises(self) -> None:
        with pytest.raises(EngineError):
            _engine(_FakeSimpleEngine([])).evaluate_multipv(START, 14, 3)


def test_close_quits_once() -> None:
    fake = _FakeSimpleEngine([_info(chess.engine.Cp(0))])
    engine = _engine(fake)
    engine.evaluate(START, 5)

    engine.close()
    engine.close()

    assert fake.quit_calls == 1


def test_close_before_start_is_noop() -> None:
    UciEngine("never-started").close()
