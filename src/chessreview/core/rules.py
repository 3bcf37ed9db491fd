"""Move-legality collaborator backed by python-chess."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum

import chess

STARTING_FEN = chess.STARTING_FEN


class Termination(StrEnum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    REPETITION = "repetition"


@dataclass(slots=True, frozen=True)
class LegalMove:
    """A legal move in coordinate form."""

    from_square: str
    to_square: str
    promotion: str | None = None

    @property
    def uci(self) -> str:
        return f"{self.from_square}{self.to_square}{self.promotion or ''}"


def board_fen(fen: str) -> str:
    """Piece placement field of *fen*."""
    return fen.split(" ", 1)[0]


def _repetition_key(fen: str) -> str:
    return " ".join(fen.split()[:4])


class MoveRules:
    """Stateless legality queries on FEN strings."""

    __slots__ = ()

    def legal_moves(self, fen: str) -> list[LegalMove]:
        board = chess.Board(fen)
        return [_to_legal_move(move) for move in board.legal_moves]

    def legal_moves_from(self, fen: str, from_square: str) -> list[LegalMove]:
        return [m for m in self.legal_moves(fen) if m.from_square == from_square]

    def has_single_legal_move(self, fen: str) -> bool:
        return chess.Board(fen).legal_moves.count() == 1

    def is_promotion(self, fen: str, from_square: str, to_square: str) -> bool:
        return any(
            m.to_square == to_square and m.promotion is not None
            for m in self.legal_moves_from(fen, from_square)
        )

    def find_move(
        self,
        fen: str,
        from_square: str,
        to_square: str,
        promotion: str | None = None,
    ) -> str | None:
        """Return the UCI string of the matching legal move, if any."""
        wanted = promotion.lower() if promotion else None
        for move in self.legal_moves_from(fen, from_square):
            if move.to_square == to_square and move.promotion == wanted:
                return move.uci
        return None

    def apply_move(self, fen: str, uci: str) -> str:
        """Play *uci* on *fen* and return the resulting FEN.

        Raises:
            ValueError: If the move is malformed or illegal.
        """
        board = chess.Board(fen)
        move = chess.Move.from_uci(uci)
        if move not in board.legal_moves:
            raise ValueError(f"Illegal move {uci} in {fen}")
        board.push(move)
        return board.fen()

    def uci_to_san(self, fen: str, uci: str) -> str:
        board = chess.Board(fen)
        move = self._legal_or_none(board, uci)
        return uci if move is None else board.san(move)

    def pv_to_san(self, fen: str, pv: Sequence[str]) -> list[str]:
        """Convert a UCI variation to SAN, keeping UCI from the first bad move."""
        board = chess.Board(fen)
        san: list[str] = []
        for i, uci in enumerate(pv):
            move = self._legal_or_none(board, uci)
            if move is None:
                san.extend(pv[i:])
                break
            san.append(board.san(move))
            board.push(move)
        return san

    def termination(
        self,
        fen: str,
        history: Iterable[str] = (),
    ) -> Termination | None:
        """Report how the game ended at *fen*, if it did.

        *history* holds the FENs of the line ending at *fen* (inclusive)
        and is only used for threefold repetition.
        """
        board = chess.Board(fen)
        if board.is_checkmate():
            return Termination.CHECKMATE
        if board.is_stalemate():
            return Termination.STALEMATE
        if board.is_insufficient_material():
            return Termination.INSUFFICIENT_MATERIAL
        seen = Counter(_repetition_key(f) for f in history)
        if seen[_repetition_key(fen)] >= 3:
            return Termination.REPETITION
        return None

    @staticmethod
    def _legal_or_none(board: chess.Board, uci: str) -> chess.Move | None:
        try:
            move = chess.Move.from_uci(uci)
        except ValueError:
            return None
        return move if move in board.legal_moves else None


def _to_legal_move(move: chess.Move) -> LegalMove:
    return LegalMove(
        from_square=chess.square_name(move.from_square),
        to_square=chess.square_name(move.to_square),
        promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
    )
