"""Tests for the python-chess backed move rules."""

from __future__ import annotations

import pytest

from chessreview.core.rules import STARTING_FEN, MoveRules, Termination, board_fen

_RULES = MoveRules()

FORCED_FEN = "7k/8/8/8/8/8/6q1/7K w - - 0 1"
PROMOTION_FEN = "7k/P7/8/8/8/8/8/K7 w - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
BARE_KINGS = "7k/8/8/8/8/8/8/K7 w - - 0 1"


class TestLegalMoves:
    def test_starting_position_has_twenty_moves(self) -> None:
        assert len(_RULES.legal_moves(STARTING_FEN)) == 20

    def test_moves_from_square(self) -> None:
        targets = {m.to_square for m in _RULES.legal_moves_from(STARTING_FEN, "g1")}
        assert targets == {"f3", "h3"}

    def test_single_legal_move(self) -> None:
        assert _RULES.has_single_legal_move(FORCED_FEN)
        assert not _RULES.has_single_legal_move(STARTING_FEN)

    def test_promotion_detection(self) -> None:
        assert _RULES.is_promotion(PROMOTION_FEN, "a7", "a8")
        assert not _RULES.is_promotion(STARTING_FEN, "e2", "e4")


class TestFindAndApply:
    def test_find_move(self) -> None:
        assert _RULES.find_move(STARTING_FEN, "e2", "e4") == "e2e4"

    def test_find_move_rejects_illegal(self) -> None:
        assert _RULES.find_move(STARTING_FEN, "e2", "e5") is None

    def test_find_promotion_requires_piece(self) -> None:
        assert _RULES.find_move(PROMOTION_FEN, "a7", "a8") is None
        assert _RULES.find_move(PROMOTION_FEN, "a7", "a8", "Q") == "a7a8q"

    def test_apply_move(self) -> None:
        fen = _RULES.apply_move(STARTING_FEN, "e2e4")
        assert board_fen(fen) == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR"
        assert fen.split()[1] == "b"

    @pytest.mark.parametrize("uci", ["e2e5", "zz99", ""])
    def test_apply_illegal_move_raises(self, uci: str) -> None:
        with pytest.raises(ValueError):
            _RULES.apply_move(STARTING_FEN, uci)


class TestNotation:
    def test_uci_to_san(self) -> None:
        assert _RULES.uci_to_san(STARTING_FEN, "g1f3") == "Nf3"

    def test_uci_to_san_falls_back_for_illegal(self) -> None:
        assert _RULES.uci_to_san(STARTING_FEN, "e2e5") == "e2e5"

    def test_pv_to_san(self) -> None:
        assert _RULES.pv_to_san(STARTING_FEN, ["e2e4", "e7e5", "g1f3"]) == [
            "e4",
            "e5",
            "Nf3",
        ]

    def test_pv_to_san_keeps_tail_after_bad_move(self) -> None:
        assert _RULES.pv_to_san(STARTING_FEN, ["e2e4", "e2e4", "g1f3"]) == [
            "e4",
            "e2e4",
            "g1f3",
        ]


class TestTermination:
    def test_checkmate(self) -> None:
        assert _RULES.termination(FOOLS_MATE) is Termination.CHECKMATE

    def test_stalemate(self) -> None:
        assert _RULES.termination(STALEMATE) is Termination.STALEMATE

    def test_insufficient_material(self) -> None:
        assert _RULES.termination(BARE_KINGS) is Termination.INSUFFICIENT_MATERIAL

    def test_ongoing(self) -> None:
        assert _RULES.termination(STARTING_FEN) is None

    def test_threefold_repetition(self) -> None:
        fens = [STARTING_FEN]
        for uci in ["g1f3", "g8f6", "f3g1", "f6g8"] * 2:
            fens.append(_RULES.apply_move(fens[-1], uci))
        assert _RULES.termination(fens[-1], fens) is Termination.REPETITION

    def test_twofold_is_not_repetition(self) -> None:
        fens = [STARTING_FEN]
        for uci in ["g1f3", "g8f6", "f3g1", "f6g8"]:
            fens.append(_RULES.apply_move(fens[-1], uci))
        assert _RULES.termination(fens[-1], fens) is None
