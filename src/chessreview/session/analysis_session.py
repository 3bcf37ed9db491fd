"""Background analysis orchestration for the owning (UI) thread."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from chessreview.analysis.models import Position, PositionUpdate
from chessreview.analysis.scheduler import (
    AnalysisCancelled,
    AnalysisScheduler,
    BranchSnapshot,
    CancellationToken,
)
from chessreview.engine.interfaces import PvLine
from chessreview.game.interfaces import IAnalysisRunner

_LOGGER = logging.getLogger(__name__)


class _AnalysisCommandBus(QObject):
    main_line_requested = pyqtSignal(int, int, object, object)
    branch_scan_requested = pyqtSignal(object, object)
    alternative_lines_requested = pyqtSignal(str, int)


class _AnalysisWorker(QObject):
    """Thread-affine owner of the scheduler; handles one request at a time."""

    position_updated = pyqtSignal(object)  # PositionUpdate
    progress = pyqtSignal(int, int, int)  # revision, done, total
    main_line_finished = pyqtSignal(int)  # revision
    branch_finished = pyqtSignal(int, int, int)  # revision, positions revision, calls
    alternative_lines_ready = pyqtSignal(str, object)  # fen, lines
    failed = pyqtSignal(int, str)  # revision, message

    __slots__ = ("_scheduler",)

    def __init__(self, scheduler: AnalysisScheduler) -> None:
        super().__init__()
        self._scheduler = scheduler

    @pyqtSlot(int, int, object, object)
    def scan_main_line(
        self,
        revision: int,
        epoch: int,
        positions_obj: object,
        token_obj: object,
    ) -> None:
        if not isinstance(token_obj, CancellationToken):
            self.failed.emit(revision, "Invalid cancellation token for analysis")
            return
        if not isinstance(positions_obj, tuple):
            self.failed.emit(revision, "Invalid positions for analysis")
            return

        try:
            self._scheduler.scan_main_line(
                positions_obj,
                revision=revision,
                epoch=epoch,
                token=token_obj,
                on_update=self.position_updated.emit,
                on_progress=lambda done, total: self.progress.emit(
                    revision,
                    done,
                    total,
                ),
            )
        except AnalysisCancelled:
            _LOGGER.debug("Main line scan %d cancelled", revision)
            return
        except Exception as exc:
            _LOGGER.exception("Main line scan %d failed", revision)
            self.failed.emit(revision, str(exc))
            return
        self.main_line_finished.emit(revision)

    @pyqtSlot(object, object)
    def scan_branch(self, snapshot_obj: object, token_obj: object) -> None:
        if not isinstance(snapshot_obj, BranchSnapshot):
            self.failed.emit(-1, "Invalid branch snapshot for analysis")
            return
        if not isinstance(token_obj, CancellationToken):
            self.failed.emit(snapshot_obj.revision, "Invalid cancellation token")
            return

        try:
            calls = self._scheduler.scan_branch(
                snapshot_obj,
                token=token_obj,
                on_update=self.position_updated.emit,
            )
        except AnalysisCancelled:
            _LOGGER.debug(
                "Branch scan at revision %d superseded",
                snapshot_obj.positions_revision,
            )
            return
        except Exception as exc:
            _LOGGER.exception("Branch scan failed")
            self.failed.emit(snapshot_obj.revision, str(exc))
            return
        self.branch_finished.emit(
            snapshot_obj.revision,
            snapshot_obj.positions_revision,
            calls,
        )

    @pyqtSlot(str, int)
    def alternative_lines(self, fen: str, lines: int) -> None:
        self.alternative_lines_ready.emit(
            fen,
            self._scheduler.alternative_lines(fen, lines),
        )


class AnalysisSession(IAnalysisRunner):
    """Owns worker-thread lifecycle for main-line and branch analysis."""

    __slots__ = (
        "_scheduler",
        "_on_update",
        "_on_progress",
        "_on_finished",
        "_on_failed",
        "_on_branch_finished",
        "_on_alternative_lines",
        "_command_bus",
        "_thread",
        "_worker",
        "_is_started",
        "_is_shutting_down",
        "_current_revision",
        "_main_token",
        "_branch_token",
    )

    def __init__(
        self,
        scheduler: AnalysisScheduler,
        *,
        on_update: Callable[[PositionUpdate], object],
        on_progress: Callable[[int, int], None],
        on_finished: Callable[[int], None],
        on_failed: Callable[[str], None],
        on_branch_finished: Callable[[int, int], None] | None = None,
        on_alternative_lines: Callable[[str, tuple[PvLine, ...]], None] | None = None,
        parent: QObject | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_update = on_update
        self._on_progress = on_progress
        self._on_finished = on_finished
        self._on_failed = on_failed
        self._on_branch_finished = on_branch_finished
        self._on_alternative_lines = on_alternative_lines

        self._command_bus = _AnalysisCommandBus(parent)
        self._thread = QThread(parent)
        self._worker = _AnalysisWorker(scheduler)
        self._is_started = False
        self._is_shutting_down = False
        self._current_revision: int | None = None
        self._main_token: CancellationToken | None = None
        self._branch_token: CancellationToken | None = None

    @property
    def scheduler(self) -> AnalysisScheduler:
        return self._scheduler

    def setup(self) -> None:
        """Start worker thread and connect cross-thread signals."""
        if self._is_started:
            return
        self._is_shutting_down = False
        self._worker.moveToThread(self._thread)
        self._command_bus.main_line_requested.connect(self._worker.scan_main_line)
        self._command_bus.branch_scan_requested.connect(self._worker.scan_branch)
        self._command_bus.alternative_lines_requested.connect(
            self._worker.alternative_lines
        )
        self._worker.position_updated.connect(self._on_worker_update)
        self._worker.progress.connect(self._on_worker_progress)
        self._worker.main_line_finished.connect(self._on_worker_finished)
        self._worker.branch_finished.connect(self._on_worker_branch_finished)
        self._worker.alternative_lines_ready.connect(self._on_worker_lines)
        self._worker.failed.connect(self._on_worker_failed)
        self._thread.start()
        self._is_started = True

    def shutdown(self) -> None:
        """Cancel active work, stop the worker thread and close the engine."""
        if not self._is_started:
            return
        self._is_shutting_down = True
        self.cancel_analysis()
        self._thread.quit()
        self._thread.wait(5000)
        self._scheduler.close()
        self._is_started = False

    # ── IAnalysisRunner impl ─────────────────────────────────────────────

    def start_main_line(
        self,
        *,
        revision: int,
        epoch: int,
        positions: Sequence[Position],
    ) -> bool:
        """Start (or restart) the main-line scan of a freshly imported game."""
        if not positions:
            return False
        if not self._is_started:
            self.setup()
        if self._is_shutting_down:
            return False

        self.cancel_analysis()
        self._current_revision = revision
        self._main_token = CancellationToken()
        self._command_bus.main_line_requested.emit(
            revision,
            epoch,
            tuple(positions),
            self._main_token,
        )
        return True

    def request_branch_scan(self, snapshot: BranchSnapshot) -> bool:
        """Queue a branch scan; a newer request supersedes the pending one."""
        if not self._is_started or self._is_shutting_down:
            return False
        if snapshot.revision != self._current_revision:
            return False
        if self._branch_token is not None:
            self._branch_token.cancel()
        self._branch_token = CancellationToken()
        self._command_bus.branch_scan_requested.emit(snapshot, self._branch_token)
        return True

    def request_alternative_lines(self, fen: str, lines: int) -> bool:
        if not self._is_started or self._is_shutting_down:
            return False
        self._command_bus.alternative_lines_requested.emit(fen, lines)
        return True

    def reset_cache(self, epoch: int) -> None:
        if self._branch_token is not None:
            self._branch_token.cancel()
            self._branch_token = None
        self._scheduler.cache.reset(epoch)

    def analyzing_fens(self) -> frozenset[str]:
        return self._scheduler.analyzing.snapshot()

    def cancel_analysis(self) -> None:
        """Cancel the main-line scan and any branch scan."""
        for token in (self._main_token, self._branch_token):
            if token is not None:
                token.cancel()
        self._main_token = None
        self._branch_token = None

    # ── Worker signal handlers ───────────────────────────────────────────

    def _on_worker_update(self, update_obj: object) -> None:
        if self._is_shutting_down:
            return
        if not isinstance(update_obj, PositionUpdate):
            return
        if update_obj.revision != self._current_revision:
            return
        self._on_update(update_obj)

    def _on_worker_progress(self, revision: int, done: int, total: int) -> None:
        if self._is_shutting_down or revision != self._current_revision:
            return
        self._on_progress(done, total)

    def _on_worker_finished(self, revision: int) -> None:
        if self._is_shutting_down or revision != self._current_revision:
            return
        self._main_token = None
        self._on_finished(revision)

    def _on_worker_branch_finished(
        self,
        revision: int,
        positions_revision: int,
        calls: int,
    ) -> None:
        if self._is_shutting_down or revision != self._current_revision:
            return
        _LOGGER.debug(
            "Branch scan for positions revision %d made %d engine calls",
            positions_revision,
            calls,
        )
        if self._on_branch_finished is not None:
            self._on_branch_finished(positions_revision, calls)

    def _on_worker_lines(self, fen: str, lines_obj: object) -> None:
        if self._is_shutting_down or self._on_alternative_lines is None:
            return
        if not isinstance(lines_obj, tuple):
            return
        self._on_alternative_lines(fen, lines_obj)

    def _on_worker_failed(self, revision: int, message: str) -> None:
        if self._is_shutting_down:
            return
        if revision != -1 and revision != self._current_revision:
            return
        self._on_failed(message)
