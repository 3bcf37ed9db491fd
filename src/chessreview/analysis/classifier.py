"""Move classification from consecutive engine evaluations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from chessreview.analysis.evaluation import (
    Eval,
    EvalKind,
    Side,
    parse_evaluation,
    side_to_move,
)
from chessreview.analysis.expected_points import expected_points_loss, move_accuracy
from chessreview.analysis.models import Classification, Position

if TYPE_CHECKING:
    from chessreview.core.opening_book import OpeningBook
    from chessreview.core.rules import MoveRules

# Upper bounds (exclusive) on expected-points loss for centipawn pairs.
_BEST_MAX_LOSS = 0.01
_EXCELLENT_MAX_LOSS = 0.045
_OKAY_MAX_LOSS = 0.08
_INACCURACY_MAX_LOSS = 0.12
_MISTAKE_MAX_LOSS = 0.22

_OVERWHELMING_MATE = 900


def _normalize_uci(move: str) -> str:
    move = move.strip().lower()
    if len(move) > 4 and move[4:] == "none":
        return move[:4]
    return move


def classify(
    previous: Eval,
    current: Eval,
    mover: Side,
    *,
    played_move: str | None = None,
    best_move: str | None = None,
) -> Classification:
    """Classify a move by the evaluation before (*previous*) and after it.

    When both *played_move* and *best_move* are given and equal, the move
    is the engine's own choice and is ``BEST`` regardless of search noise.
    """
    if played_move is not None and best_move is not None:
        if _normalize_uci(played_move) == _normalize_uci(best_move):
            return Classification.BEST

    prev_subj = previous.for_side(mover)
    cur_subj = current.for_side(mover)

    if (
        previous.kind is EvalKind.MATE
        and prev_subj > 0
        and (
            (current.kind is EvalKind.MATE and abs(current.value) > _OVERWHELMING_MATE)
            or (current.kind is EvalKind.CENTIPAWN and current.value == 0)
        )
    ):
        return Classification.BEST

    if previous.kind is EvalKind.MATE and current.kind is EvalKind.MATE:
        if prev_subj > 0 and cur_subj < 0:
            return Classification.MISTAKE if cur_subj < -3 else Classification.BLUNDER
        mate_loss = (current.value - previous.value) * mover.sign
        if mate_loss < 0 or (mate_loss == 0 and cur_subj < 0):
            return Classification.BEST
        if mate_loss < 2:
            return Classification.EXCELLENT
        if mate_loss < 7:
            return Classification.OKAY
        return Classification.INACCURACY

    if previous.kind is EvalKind.MATE:
        if cur_subj >= 800:
            return Classification.EXCELLENT
        if cur_subj >= 400:
            return Classification.OKAY
        if cur_subj >= 200:
            return Classification.INACCURACY
        if cur_subj >= 0:
            return Classification.MISTAKE
        return Classification.BLUNDER

    if current.kind is EvalKind.MATE:
        if cur_subj > 0:
            return Classification.BEST
        if cur_subj >= -2:
            return Classification.BLUNDER
        if cur_subj >= -5:
            return Classification.MISTAKE
        return Classification.INACCURACY

    loss = expected_points_loss(previous, current, mover)
    if loss < _BEST_MAX_LOSS:
        return Classification.BEST
    if loss < _EXCELLENT_MAX_LOSS:
        return Classification.EXCELLENT
    if loss < _OKAY_MAX_LOSS:
        return Classification.OKAY
    if loss < _INACCURACY_MAX_LOSS:
        return Classification.INACCURACY
    if loss < _MISTAKE_MAX_LOSS:
        return Classification.MISTAKE
    return Classification.BLUNDER


def resolve_classification(
    previous: Position,
    current: Position,
    *,
    rules: MoveRules,
    book: OpeningBook | None = None,
    carried_opening: str | None = None,
) -> Position:
    """Return *current* with its classification fields filled in.

    Precedence: opening book, then a forced reply, then :func:`classify`
    (only when both positions carry a parseable score).
    """
    opening_name = book.lookup(current.board_fen) if book is not None else None
    if opening_name is not None:
        return replace(
            current,
            is_book=True,
            opening_name=opening_name,
            forced=False,
            classification=Classification.BOOK,
            accuracy=None,
        )

    if rules.has_single_legal_move(previous.fen):
        return replace(
            current,
            is_book=False,
            opening_name=carried_opening,
            forced=True,
            classification=Classification.FORCED,
            accuracy=None,
        )

    mover = side_to_move(previous.fen)
    prev_eval = parse_evaluation(previous.score, previous.fen)
    cur_eval = parse_evaluation(current.score, current.fen)
    if prev_eval is None or cur_eval is None:
        return replace(
            current,
            is_book=False,
            opening_name=carried_opening,
            forced=False,
            classification=None,
            accuracy=None,
        )
    return replace(
        current,
        is_book=False,
        opening_name=carried_opening,
        forced=False,
        classification=classify(
            prev_eval,
            cur_eval,
            mover,
            played_move=current.played_move,
            best_move=previous.best_move,
        ),
        accuracy=move_accuracy(prev_eval, cur_eval, mover),
    )


def classify_line(
    positions: Sequence[Position],
    *,
    rules: MoveRules,
    book: OpeningBook | None = None,
) -> list[Position]:
    """Classify a whole line left to right; index 0 is left untouched."""
    result = list(positions)
    last_opening: str | None = None
    for i in range(1, len(result)):
        resolved = resolve_classification(
            result[i - 1],
            result[i],
            rules=rules,
            book=book,
            carried_opening=last_opening,
        )
        if resolved.is_book:
            last_opening = resolved.opening_name
        result[i] = resolved
    return result
