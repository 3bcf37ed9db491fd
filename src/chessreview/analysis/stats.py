"""Per-side classification counts and accuracy for a classified line."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from chessreview.analysis.evaluation import Side, side_to_move
from chessreview.analysis.expected_points import average_accuracy
from chessreview.analysis.models import (
    Classification,
    ClassificationStats,
    Position,
    SideStats,
)


def classification_stats(positions: Sequence[Position]) -> ClassificationStats:
    """Count classifications per mover; the start position is skipped.

    The mover of ``positions[i]`` is the side to move in ``positions[i - 1]``,
    so games starting from a Black-to-move FEN are attributed correctly.
    """
    counts: dict[Side, Counter[Classification]] = {
        Side.WHITE: Counter(),
        Side.BLACK: Counter(),
    }
    accuracies: dict[Side, list[float | None]] = {Side.WHITE: [], Side.BLACK: []}

    for previous, current in zip(positions, positions[1:]):
        mover = side_to_move(previous.fen)
        if current.classification is not None:
            counts[mover][current.classification] += 1
        accuracies[mover].append(current.accuracy)

    return ClassificationStats(
        white=SideStats(
            counts=dict(counts[Side.WHITE]),
            accuracy=average_accuracy(accuracies[Side.WHITE]),
        ),
        black=SideStats(
            counts=dict(counts[Side.BLACK]),
            accuracy=average_accuracy(accuracies[Side.BLACK]),
        ),
    )
