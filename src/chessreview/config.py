"""Runtime settings for a review session."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from chessreview.analysis.scheduler import DEFAULT_DEPTH
from chessreview.runtime_assets import asset_path


def _default_book_path() -> Path:
    return asset_path("openings.json")


@dataclass(slots=True)
class ReviewSettings:
    """User-tunable knobs; the CLI fills these from its arguments."""

    engine_path: str = "stockfish"
    depth: int = DEFAULT_DEPTH
    multipv_lines: int = 3
    book_path: Path = field(default_factory=_default_book_path)
    log_level: str = "WARNING"
