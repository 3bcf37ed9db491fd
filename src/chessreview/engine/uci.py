"""UCI engine adapter built on ``chess.engine``."""

from __future__ import annotations

import logging
from collections.abc import Callable

import chess
import chess.engine

from chessreview.engine.interfaces import (
    EngineError,
    EngineResult,
    MultiPvResult,
    PvLine,
)

_LOGGER = logging.getLogger(__name__)

EngineFactory = Callable[[str], chess.engine.SimpleEngine]


def format_score(score: chess.engine.Score) -> str:
    """Render a side-to-move relative score as ``"0.34"`` or ``"mate N"``."""
    if score.is_mate():
        mate = score.mate()
        return f"mate {mate if mate is not None else 0}"
    cp = score.score()
    if cp is None:
        raise EngineError(f"Engine returned an unusable score: {score!r}")
    return f"{cp / 100:.2f}"


def _info_score(info: chess.engine.InfoDict) -> str:
    pov = info.get("score")
    if pov is None:
        raise EngineError("Engine reply carried no score")
    return format_score(pov.relative)


def _info_pv(info: chess.engine.InfoDict) -> tuple[str, ...]:
    return tuple(move.uci() for move in info.get("pv", ()))


class UciEngine:
    """A UCI engine process started lazily on the first request."""

    __slots__ = ("_path", "_factory", "_engine")

    def __init__(
        self,
        path: str = "stockfish",
        *,
        factory: EngineFactory | None = None,
    ) -> None:
        self._path = path
        self._factory = factory or chess.engine.SimpleEngine.popen_uci
        self._engine: chess.engine.SimpleEngine | None = None

    def _ensure_started(self) -> chess.engine.SimpleEngine:
        if self._engine is None:
            _LOGGER.info("Starting UCI engine: %s", self._path)
            try:
                self._engine = self._factory(self._path)
            except (OSError, chess.engine.EngineError) as exc:
                raise EngineError(f"Cannot start engine {self._path!r}: {exc}") from exc
        return self._engine

    def evaluate(self, fen: str, depth: int) -> EngineResult:
        engine = self._ensure_started()
        try:
            board = chess.Board(fen)
            info = engine.analyse(board, chess.engine.Limit(depth=depth))
        except ValueError as exc:
            raise EngineError(f"Invalid FEN {fen!r}: {exc}") from exc
        except (chess.engine.EngineError, chess.engine.EngineTerminatedError) as exc:
            raise EngineError(str(exc)) from exc
        pv = _info_pv(info)
        return EngineResult(score=_info_score(info), best_move=pv[0] if pv else None)

    def evaluate_multipv(self, fen: str, depth: int, lines: int) -> MultiPvResult:
        engine = self._ensure_started()
        try:
            board = chess.Board(fen)
            infos = engine.analyse(
                board,
                chess.engine.Limit(depth=depth),
                multipv=max(1, lines),
            )
        except ValueError as exc:
            raise EngineError(f"Invalid FEN {fen!r}: {exc}") from exc
        except (chess.engine.EngineError, chess.engine.EngineTerminatedError) as exc:
            raise EngineError(str(exc)) from exc
        if not infos:
            raise EngineError("Engine returned no principal variations")

        ranked: list[PvLine] = []
        for info in infos:
            pv = _info_pv(info)
            ranked.append(
                PvLine(score=_info_score(info), move=pv[0] if pv else None, pv=pv)
            )
        top = ranked[0]
        return MultiPvResult(score=top.score, best_move=top.move, lines=tuple(ranked))

    def close(self) -> None:
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        try:
            engine.quit()
        except chess.engine.EngineTerminatedError:
            _LOGGER.debug("Engine %s already terminated", self._path)
