"""ReviewController: the entry point callers use to review a game.

Coordinates: Timeline, MoveRules, the analysis runner.
Emits events via simple callbacks so the UI / tests can subscribe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from chessreview.analysis.models import (
    ClassificationStats,
    Position,
    PositionStatus,
    PositionUpdate,
)
from chessreview.analysis.stats import classification_stats
from chessreview.core.pgn import positions_from_pgn
from chessreview.core.rules import MoveRules, Termination
from chessreview.engine.interfaces import PvLine
from chessreview.game.interfaces import IAnalysisRunner
from chessreview.game.timeline import Timeline

_LOGGER = logging.getLogger(__name__)

IMPORT_FAILED_MESSAGE = (
    "Failed to parse game: this game format is not supported "
    "(e.g., Chess960 variants)"
)

# ── Event definitions ────────────────────────────────────────────────────────

PositionUpdatedCallback = Callable[[int, Position], None]  # index, position
ProgressCallback = Callable[[int, int], None]  # done, total
AnalysisFinishedCallback = Callable[[ClassificationStats], None]
TimelineCallback = Callable[[Timeline], None]
ImportFailedCallback = Callable[[str], None]
AlternativeLinesCallback = Callable[[str, tuple[PvLine, ...]], None]  # fen, lines
Importer = Callable[[str], list[Position]]


@dataclass
class ReviewEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_position_updated: list[PositionUpdatedCallback] = field(default_factory=list)
    on_progress: list[ProgressCallback] = field(default_factory=list)
    on_analysis_finished: list[AnalysisFinishedCallback] = field(default_factory=list)
    on_timeline_changed: list[TimelineCallback] = field(default_factory=list)
    on_import_failed: list[ImportFailedCallback] = field(default_factory=list)
    on_alternative_lines: list[AlternativeLinesCallback] = field(default_factory=list)


# ── Controller ───────────────────────────────────────────────────────────────


class ReviewController:
    """Imports games, applies user moves and routes analysis results.

    Thread-safety: every method runs on the thread that owns the timeline.
    Results computed by the runner arrive through :meth:`apply_update`,
    :meth:`report_progress` and :meth:`finish_main_line`, which the runner
    must deliver on that same thread.
    """

    __slots__ = (
        "__weakref__",
        "_timeline",
        "_runner",
        "_rules",
        "_importer",
        "_analysis_revision",
        "_main_line_complete",
        "events",
    )

    def __init__(
        self,
        runner: IAnalysisRunner | None = None,
        *,
        rules: MoveRules | None = None,
        importer: Importer = positions_from_pgn,
    ) -> None:
        self._rules = rules or MoveRules()
        self._timeline = Timeline(rules=self._rules)
        self._runner = runner
        self._importer = importer
        self._analysis_revision = 0
        self._main_line_complete = False
        self.events = ReviewEvents()

    def attach_runner(self, runner: IAnalysisRunner) -> None:
        self._runner = runner

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def timeline(self) -> Timeline:
        return self._timeline

    @property
    def analysis_revision(self) -> int:
        return self._analysis_revision

    @property
    def is_analysis_complete(self) -> bool:
        return self._main_line_complete

    # ── Game lifecycle ───────────────────────────────────────────────────

    def import_game(self, pgn: str) -> Timeline:
        """Replace the current game with *pgn* and start analyzing it.

        An unparsable game yields an empty timeline, reported once through
        ``on_import_failed``; no analysis is started for it.
        """
        self._analysis_revision += 1
        revision = self._analysis_revision
        if self._runner is not None:
            self._runner.cancel_analysis()

        positions = self._importer(pgn)
        epoch = self._timeline.epoch + 1
        self._timeline = Timeline(
            positions,
            revision=revision,
            epoch=epoch,
            rules=self._rules,
        )
        self._main_line_complete = False

        if not positions:
            _LOGGER.warning("Import %d produced no positions", revision)
            for cb in self.events.on_import_failed:
                cb(IMPORT_FAILED_MESSAGE)
            self._emit_timeline_changed()
            return self._timeline

        if self._runner is not None:
            self._runner.reset_cache(epoch)
            self._runner.start_main_line(
                revision=revision,
                epoch=epoch,
                positions=self._timeline.positions,
            )
        self._emit_timeline_changed()
        return self._timeline

    # ── Navigation & user moves ──────────────────────────────────────────

    def go_to(self, index: int) -> int:
        """Move the cursor; stepping onto the main line discards the branch."""
        if self._timeline.move_cursor(index):
            if self._runner is not None:
                self._runner.reset_cache(self._timeline.epoch)
            self._emit_timeline_changed()
        return self._timeline.cursor

    def play_move(
        self,
        from_square: str,
        to_square: str,
        promotion: str | None = None,
    ) -> bool:
        """Play a move from the cursor position; ``False`` if it is illegal."""
        current = self._timeline.current
        if current is None:
            return False
        uci = self._rules.find_move(current.fen, from_square, to_square, promotion)
        if uci is None:
            return False
        self._timeline.append_move(uci)
        self._after_suffix_changed()
        return True

    def needs_promotion(self, from_square: str, to_square: str) -> bool:
        current = self._timeline.current
        if current is None:
            return False
        return self._rules.is_promotion(current.fen, from_square, to_square)

    def explore_line(self, pv: Sequence[str], upto_index: int) -> int:
        """Play a candidate variation up to *upto_index*; returns moves added."""
        if self._timeline.is_empty:
            return 0
        added = self._timeline.explore_line(pv, upto_index)
        if not added:
            return 0
        self._after_suffix_changed()
        return len(added)

    def request_alternative_lines(self, lines: int = 3) -> bool:
        current = self._timeline.current
        if current is None or self._runner is None:
            return False
        return self._runner.request_alternative_lines(current.fen, lines)

    def pv_to_san(self, fen: str, pv: Sequence[str]) -> list[str]:
        return self._rules.pv_to_san(fen, pv)

    # ── Queries ──────────────────────────────────────────────────────────

    def current_classification_stats(
        self,
        *,
        include_branch: bool = False,
    ) -> ClassificationStats:
        """Per-side counts and accuracy of the imported game.

        The original line is used unless *include_branch* asks for the
        live line with the user's moves.
        """
        if include_branch:
            return classification_stats(self._timeline.positions)
        return classification_stats(self._timeline.original_positions)

    def position_status(self, index: int) -> PositionStatus:
        position = self._timeline[index]
        if position.analysis_failed:
            return PositionStatus.UNAVAILABLE
        if position.score is None:
            return PositionStatus.PENDING
        if self._runner is not None and position.fen in self._runner.analyzing_fens():
            return PositionStatus.PENDING
        return PositionStatus.ANALYZED

    def termination(self) -> Termination | None:
        """How the game ended at the cursor, if it did."""
        current = self._timeline.current
        if current is None:
            return None
        history = [p.fen for p in self._timeline.positions[: self._timeline.cursor + 1]]
        return self._rules.termination(current.fen, history)

    # ── Runner callbacks ─────────────────────────────────────────────────

    def apply_update(self, update: PositionUpdate) -> bool:
        if not self._timeline.apply_update(update):
            _LOGGER.debug("Dropped stale update for index %d", update.index)
            return False
        index = update.index
        if index < len(self._timeline) and self._timeline[index] == update.position:
            for cb in self.events.on_position_updated:
                cb(index, update.position)
        return True

    def report_progress(self, done: int, total: int) -> None:
        for cb in self.events.on_progress:
            cb(done, total)

    def finish_main_line(self, revision: int) -> None:
        if revision != self._timeline.revision:
            return
        self._main_line_complete = True
        stats = self.current_classification_stats()
        for cb in self.events.on_analysis_finished:
            cb(stats)

    def receive_alternative_lines(self, fen: str, lines: tuple[PvLine, ...]) -> None:
        current = self._timeline.current
        if current is None or current.fen != fen:
            return
        for cb in self.events.on_alternative_lines:
            cb(fen, lines)

    # ── Internals ────────────────────────────────────────────────────────

    def _after_suffix_changed(self) -> None:
        self._emit_timeline_changed()
        snapshot = self._timeline.branch_snapshot()
        if snapshot is not None and self._runner is not None:
            self._runner.request_branch_scan(snapshot)

    def _emit_timeline_changed(self) -> None:
        for cb in self.events.on_timeline_changed:
            cb(self._timeline)
