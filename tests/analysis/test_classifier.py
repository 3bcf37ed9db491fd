"""Tests for move classification."""

from __future__ import annotations

import pytest

from chessreview.analysis.classifier import (
    classify,
    classify_line,
    resolve_classification,
)
from chessreview.analysis.evaluation import Eval, Side
from chessreview.analysis.models import Classification, Position
from chessreview.core.opening_book import OpeningBook
from chessreview.core.rules import STARTING_FEN, MoveRules
from chessreview.runtime_assets import asset_path

_RULES = MoveRules()

cp = Eval.centipawns
mate = Eval.mate


def _line(*ucis: str) -> list[Position]:
    positions = [Position(fen=STARTING_FEN)]
    for uci in ucis:
        fen = _RULES.apply_move(positions[-1].fen, uci)
        positions.append(Position(fen=fen, played_move=uci))
    return positions


class TestClassifyCentipawns:
    @pytest.mark.parametrize(
        ("before", "after", "expected"),
        [
            (30, 28, Classification.BEST),
            (50, 30, Classification.EXCELLENT),
            (100, 30, Classification.OKAY),
            (100, -20, Classification.INACCURACY),
            (150, -50, Classification.MISTAKE),
            (150, -200, Classification.BLUNDER),
        ],
    )
    def test_white_thresholds(
        self,
        before: int,
        after: int,
        expected: Classification,
    ) -> None:
        assert classify(cp(before), cp(after), Side.WHITE) is expected

    def test_black_mirror(self) -> None:
        assert classify(cp(-150), cp(200), Side.BLACK) is Classification.BLUNDER

    def test_improvement_is_best(self) -> None:
        assert classify(cp(0), cp(80), Side.WHITE) is Classification.BEST

    def test_engine_move_is_best_regardless_of_scores(self) -> None:
        result = classify(
            cp(150),
            cp(-200),
            Side.WHITE,
            played_move="e2e4",
            best_move="e2e4",
        )
        assert result is Classification.BEST

    def test_different_best_move_falls_through(self) -> None:
        result = classify(
            cp(150),
            cp(-200),
            Side.WHITE,
            played_move="e2e4",
            best_move="d2d4",
        )
        assert result is Classification.BLUNDER


class TestClassifyMates:
    def test_winning_mate_turned_into_losing_mate(self) -> None:
        assert classify(mate(3), mate(-1), Side.WHITE) is Classification.BLUNDER

    def test_winning_mate_turned_into_distant_losing_mate(self) -> None:
        assert classify(mate(3), mate(-5), Side.WHITE) is Classification.MISTAKE

    def test_delivering_mate_is_best(self) -> None:
        assert classify(mate(1), mate(999), Side.WHITE) is Classification.BEST

    def test_stalemating_while_mating_is_best(self) -> None:
        assert classify(mate(2), cp(0), Side.WHITE) is Classification.BEST

    def test_shortening_mate_for_black(self) -> None:
        assert classify(mate(-3), mate(-2), Side.BLACK) is Classification.BEST

    @pytest.mark.parametrize(
        ("after", "expected"),
        [
            (3, Classification.EXCELLENT),
            (5, Classification.OKAY),
            (12, Classification.INACCURACY),
        ],
    )
    def test_lengthening_mate(self, after: int, expected: Classification) -> None:
        assert classify(mate(2), mate(after), Side.WHITE) is expected

    @pytest.mark.parametrize(
        ("after", "expected"),
        [
            (900, Classification.EXCELLENT),
            (500, Classification.OKAY),
            (250, Classification.INACCURACY),
            (100, Classification.MISTAKE),
            (-50, Classification.BLUNDER),
        ],
    )
    def test_losing_the_mate(self, after: int, expected: Classification) -> None:
        assert classify(mate(3), cp(after), Side.WHITE) is expected

    def test_finding_a_mate_is_best(self) -> None:
        assert classify(cp(50), mate(4), Side.WHITE) is Classification.BEST

    @pytest.mark.parametrize(
        ("after", "expected"),
        [
            (-1, Classification.BLUNDER),
            (-4, Classification.MISTAKE),
            (-8, Classification.INACCURACY),
        ],
    )
    def test_walking_into_mate(self, after: int, expected: Classification) -> None:
        assert classify(cp(50), mate(after), Side.WHITE) is expected


class TestResolveClassification:
    def test_book_position(self) -> None:
        start, after_e4 = _line("e2e4")
        book = OpeningBook({after_e4.board_fen: "King's Pawn Game"})

        result = resolve_classification(start, after_e4, rules=_RULES, book=book)

        assert result.classification is Classification.BOOK
        assert result.is_book
        assert result.opening_name == "King's Pawn Game"
        assert result.accuracy is None

    def test_book_wins_over_scores(self) -> None:
        start, after_e4 = _line("e2e4")
        book = OpeningBook({after_e4.board_fen: "King's Pawn Game"})
        start = Position(fen=start.fen, score="3.00")
        after_e4 = Position(fen=after_e4.fen, played_move="e2e4", score="5.00")

        result = resolve_classification(start, after_e4, rules=_RULES, book=book)

        assert result.classification is Classification.BOOK

    def test_forced_reply(self) -> None:
        previous = Position(fen="7k/8/8/8/8/8/6q1/7K w - - 0 1", score="-9.00")
        current = Position(
            fen="7k/8/8/8/8/8/6K1/8 b - - 0 1",
            played_move="h1g2",
            score="0.00",
        )

        result = resolve_classification(
            previous,
            current,
            rules=_RULES,
            carried_opening="Some Opening",
        )

        assert result.classification is Classification.FORCED
        assert result.forced
        assert result.opening_name == "Some Opening"
        assert result.accuracy is None

    def test_forced_without_scores(self) -> None:
        previous = Position(fen="7k/8/8/8/8/8/6q1/7K w - - 0 1")
        current = Position(fen="7k/8/8/8/8/8/6K1/8 b - - 0 1", played_move="h1g2")

        result = resolve_classification(previous, current, rules=_RULES)

        assert result.classification is Classification.FORCED

    def test_scored_move_gets_accuracy(self) -> None:
        start, after_d4 = _line("d2d4")
        start = Position(fen=start.fen, score="1.50")
        after_d4 = Position(fen=after_d4.fen, played_move="d2d4", score="2.00")

        result = resolve_classification(start, after_d4, rules=_RULES)

        # "2.00" with Black to move is -200 from White's side.
        assert result.classification is Classification.BLUNDER
        assert result.accuracy is not None
        assert 0.0 <= result.accuracy < 50.0

    def test_missing_score_leaves_unclassified(self) -> None:
        start, after_d4 = _line("d2d4")
        start = Position(fen=start.fen, score="0.20")

        result = resolve_classification(start, after_d4, rules=_RULES)

        assert result.classification is None
        assert result.accuracy is None


class TestClassifyLine:
    def test_book_then_scored_moves_carry_opening(self) -> None:
        positions = _line("e2e4", "e7e5", "g1f3", "b8c6", "d2d4")
        scores = ["0.30", "-0.30", "0.30", "-0.30", "0.30", "-0.25"]
        positions = [
            Position(fen=p.fen, played_move=p.played_move, score=s)
            for p, s in zip(positions, scores)
        ]
        book = OpeningBook.from_json(asset_path("openings.json"))

        result = classify_line(positions, rules=_RULES, book=book)

        assert result[0] == positions[0]
        assert [p.classification for p in result[1:5]] == [Classification.BOOK] * 4
        assert result[4].opening_name == "King's Knight Opening: Normal Variation"
        assert result[5].classification is Classification.BEST
        assert not result[5].is_book
        assert result[5].opening_name == "King's Knight Opening: Normal Variation"

    def test_does_not_mutate_input(self) -> None:
        positions = _line("e2e4")
        snapshot = list(positions)
        classify_line(positions, rules=_RULES, book=OpeningBook())
        assert positions == snapshot
