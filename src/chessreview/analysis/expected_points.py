"""Expected-points (win probability) model and the accuracy curve."""

from __future__ import annotations

import math
from collections.abc import Iterable

from chessreview.analysis.evaluation import Eval, Side

DEFAULT_GRADIENT = 0.0035

# Keeps math.exp in range for extreme centipawn values.
_MAX_EXPONENT = 500.0


def expected_points(
    evaluation: Eval,
    side: Side,
    gradient: float = DEFAULT_GRADIENT,
) -> float:
    """Return White's expected points for *evaluation*.

    Centipawn values go through a logistic curve.  Mate values are 1 or 0
    by sign; a zero mate value resolves by the queried *side*.
    """
    if evaluation.is_mate:
        if evaluation.value == 0:
            return 1.0 if side is Side.WHITE else 0.0
        return 1.0 if evaluation.value > 0 else 0.0
    exponent = -gradient * evaluation.value
    exponent = max(-_MAX_EXPONENT, min(_MAX_EXPONENT, exponent))
    return 1.0 / (1.0 + math.exp(exponent))


def expected_points_loss(previous: Eval, current: Eval, mover: Side) -> float:
    """Expected points the *mover* gave away going from *previous* to *current*."""
    prev_ep = expected_points(previous, mover.opponent)
    cur_ep = expected_points(current, mover)
    return max(0.0, (prev_ep - cur_ep) * mover.sign)


def _win_percent(evaluation: Eval, side: Side) -> float:
    white_ep = expected_points(evaluation, side)
    ep = white_ep if side is Side.WHITE else 1.0 - white_ep
    return ep * 100.0


def move_accuracy(previous: Eval, current: Eval, mover: Side) -> float:
    """Accuracy percentage of a single move.

    Uses the win-percentage drop of the mover fed to
    ``103.1668 * exp(-0.04354 * drop) - 3.1669`` (Lichess style).
    """
    drop = max(0.0, _win_percent(previous, mover) - _win_percent(current, mover))
    raw = 103.1668 * math.exp(-0.04354 * drop) - 3.1669
    return max(0.0, min(100.0, raw))


def average_accuracy(accuracies: Iterable[float | None]) -> float | None:
    """Mean of the known move accuracies, ``None`` when there are none."""
    known = [a for a in accuracies if a is not None]
    if not known:
        return None
    return sum(known) / len(known)
