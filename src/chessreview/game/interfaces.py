"""Abstract interfaces for the review layer.

The controller depends on this ABC, not on the Qt worker session, so it can
be driven synchronously in tests or headless tools.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chessreview.analysis.models import Position
    from chessreview.analysis.scheduler import BranchSnapshot


class IAnalysisRunner(ABC):
    """Executes scans off the interactive path and reports back."""

    @abstractmethod
    def start_main_line(
        self,
        *,
        revision: int,
        epoch: int,
        positions: Sequence[Position],
    ) -> bool:
        """Cancel any running work and analyze a freshly imported game."""

    @abstractmethod
    def request_branch_scan(self, snapshot: BranchSnapshot) -> bool:
        """Analyze the unanalyzed suffix of *snapshot*."""

    @abstractmethod
    def request_alternative_lines(self, fen: str, lines: int) -> bool:
        """Ask for ranked candidate lines for *fen*."""

    @abstractmethod
    def reset_cache(self, epoch: int) -> None:
        """Forget cached branch analysis and start episode *epoch*."""

    @abstractmethod
    def analyzing_fens(self) -> frozenset[str]:
        """Snapshot of the FENs currently waiting on the engine."""

    @abstractmethod
    def cancel_analysis(self) -> None:
        """Cancel every active scan."""
