"""Game analysis APIs."""

from chessreview.analysis.cache import AnalysisCache, AnalyzingSet
from chessreview.analysis.classifier import (
    classify,
    classify_line,
    resolve_classification,
)
from chessreview.analysis.evaluation import Eval, EvalKind, Side, parse_evaluation
from chessreview.analysis.expected_points import (
    expected_points,
    expected_points_loss,
    move_accuracy,
)
from chessreview.analysis.models import (
    Classification,
    ClassificationStats,
    Position,
    PositionStatus,
    PositionUpdate,
    SideStats,
    UpdateSource,
)
from chessreview.analysis.scheduler import (
    AnalysisCancelled,
    AnalysisScheduler,
    BranchSnapshot,
    CancellationToken,
)
from chessreview.analysis.stats import classification_stats

__all__ = [
    "AnalysisCache",
    "AnalysisCancelled",
    "AnalysisScheduler",
    "AnalyzingSet",
    "BranchSnapshot",
    "CancellationToken",
    "Classification",
    "ClassificationStats",
    "Eval",
    "EvalKind",
    "Position",
    "PositionStatus",
    "PositionUpdate",
    "Side",
    "SideStats",
    "UpdateSource",
    "classification_stats",
    "classify",
    "classify_line",
    "expected_points",
    "expected_points_loss",
    "move_accuracy",
    "parse_evaluation",
    "resolve_classification",
]
