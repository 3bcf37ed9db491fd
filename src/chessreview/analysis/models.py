"""Data models produced by game analysis."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum, StrEnum, auto


class Classification(StrEnum):
    """Human-friendly move quality buckets."""

    BOOK = "Book"
    FORCED = "Forced"
    BEST = "Best"
    EXCELLENT = "Excellent"
    OKAY = "Okay"
    INACCURACY = "Inaccuracy"
    MISTAKE = "Mistake"
    BLUNDER = "Blunder"

    @property
    def nag(self) -> str:
        """Chess NAG annotation symbol."""
        return _CLASSIFICATION_NAG[self]

    @property
    def color_hex(self) -> str:
        """Hex colour string for UI display."""
        return _CLASSIFICATION_COLOR[self]


_CLASSIFICATION_NAG: dict[Classification, str] = {
    Classification.BOOK: "",
    Classification.FORCED: "",
    Classification.BEST: "",
    Classification.EXCELLENT: "",
    Classification.OKAY: "",
    Classification.INACCURACY: "?!",
    Classification.MISTAKE: "?",
    Classification.BLUNDER: "??",
}

_CLASSIFICATION_COLOR: dict[Classification, str] = {
    Classification.BOOK: "#a88865",
    Classification.FORCED: "#97af8b",
    Classification.BEST: "#9bc700",
    Classification.EXCELLENT: "#5c8bb0",
    Classification.OKAY: "#97af8b",
    Classification.INACCURACY: "#f7c631",
    Classification.MISTAKE: "#e68a2e",
    Classification.BLUNDER: "#ca3431",
}


class PositionStatus(IntEnum):
    """Display state of a position's engine analysis."""

    PENDING = auto()
    ANALYZED = auto()
    UNAVAILABLE = auto()


@dataclass(slots=True, frozen=True)
class Position:
    """One node of the game timeline.

    ``fen`` is the identity; every other field is filled in by analysis.
    Instances are immutable: analysis produces new values.
    """

    fen: str
    played_move: str | None = None
    san: str | None = None
    score: str | None = None
    best_move: str | None = None
    classification: Classification | None = None
    forced: bool = False
    is_book: bool = False
    opening_name: str | None = None
    accuracy: float | None = None
    analysis_failed: bool = False

    @property
    def board_fen(self) -> str:
        """Piece placement field only."""
        return self.fen.split(" ", 1)[0]

    @property
    def is_scored(self) -> bool:
        return self.score is not None

    def with_engine_result(self, score: str, best_move: str | None) -> Position:
        return replace(self, score=score, best_move=best_move, analysis_failed=False)

    def with_failure(self) -> Position:
        return replace(self, score=None, best_move=None, analysis_failed=True)

    def with_analysis_from(self, other: Position) -> Position:
        """Copy analysis fields from *other*, keeping this node's identity."""
        return replace(
            self,
            score=other.score,
            best_move=other.best_move,
            classification=other.classification,
            forced=other.forced,
            is_book=other.is_book,
            opening_name=other.opening_name,
            accuracy=other.accuracy,
            analysis_failed=other.analysis_failed,
        )


class UpdateSource(Enum):
    MAIN_LINE = "main_line"
    BRANCH = "branch"


@dataclass(slots=True, frozen=True)
class PositionUpdate:
    """Index-keyed replacement of a timeline position.

    ``fen`` is the identity the writer expects at ``index``; ``revision``
    and ``epoch`` are the counters the writing task was started under.
    """

    source: UpdateSource
    index: int
    fen: str
    position: Position
    revision: int
    epoch: int


@dataclass(slots=True, frozen=True)
class SideStats:
    """Per-side classification counts and accuracy."""

    counts: dict[Classification, int] = field(default_factory=dict)
    accuracy: float | None = None

    def count(self, classification: Classification) -> int:
        return self.counts.get(classification, 0)

    @property
    def moves(self) -> int:
        return sum(self.counts.values())


@dataclass(slots=True, frozen=True)
class ClassificationStats:
    """Classification counts for both sides of a game."""

    white: SideStats
    black: SideStats
