"""PGN import: a game's move text to the ordered list of unanalyzed positions."""

from __future__ import annotations

import io
import logging
import re

import chess
import chess.pgn

from chessreview.analysis.models import Position

_LOGGER = logging.getLogger(__name__)

# Clock and engine annotations add nothing to the move list.
_COMMENT_RE = re.compile(r"\{[^}]*\}")
_SUPPORTED_VARIANTS = frozenset({"", "standard", "chess", "from position"})
_MIN_VALID_POSITIONS = 3


def positions_from_pgn(pgn: str) -> list[Position]:
    """Parse *pgn* into positions from the start through every half-move.

    Returns an empty list when the text holds no game, the game has move
    errors, or it is played under an unsupported variant (e.g. Chess960).
    """
    cleaned = _COMMENT_RE.sub("", pgn)
    game = chess.pgn.read_game(io.StringIO(cleaned))
    if game is None:
        _LOGGER.warning("No game found in PGN text")
        return []

    variant = game.headers.get("Variant", "").strip().lower()
    if variant not in _SUPPORTED_VARIANTS:
        _LOGGER.warning("Unsupported PGN variant: %s", game.headers.get("Variant"))
        return []
    if game.errors:
        _LOGGER.warning("PGN could not be parsed: %s", game.errors[0])
        return []

    try:
        board = game.board()
    except ValueError as exc:
        _LOGGER.warning("PGN start position is invalid: %s", exc)
        return []

    positions = [Position(fen=board.fen())]
    for move in game.mainline_moves():
        san = board.san(move)
        board.push(move)
        positions.append(Position(fen=board.fen(), played_move=move.uci(), san=san))
    return positions


def is_valid_parsable_pgn(pgn: str) -> bool:
    """True when *pgn* yields the start position and at least two moves."""
    return len(positions_from_pgn(pgn)) >= _MIN_VALID_POSITIONS
