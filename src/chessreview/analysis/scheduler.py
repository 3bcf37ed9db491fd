"""Main-line and branch analysis scans over a single serial engine."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chessreview.analysis.cache import AnalysisCache, AnalyzingSet
from chessreview.analysis.classifier import classify_line, resolve_classification
from chessreview.analysis.models import Position, PositionUpdate, UpdateSource
from chessreview.core.rules import MoveRules
from chessreview.engine.interfaces import EngineError, EngineResult, IEngine, PvLine

if TYPE_CHECKING:
    from chessreview.core.opening_book import OpeningBook

_LOGGER = logging.getLogger(__name__)

DEFAULT_DEPTH = 14
MIN_DEPTH = 5
MAX_DEPTH = 20

UpdateCallback = Callable[[PositionUpdate], None]
ProgressCallback = Callable[[int, int], None]


class AnalysisCancelled(Exception):
    """Raised when a running scan notices its token was cancelled."""


class CancellationToken:
    """Thread-safe cancel flag handed to one scan."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled


@dataclass(slots=True, frozen=True)
class BranchSnapshot:
    """Immutable view of a branched timeline taken for one branch scan."""

    revision: int
    epoch: int
    positions_revision: int
    branch_point_index: int
    positions: tuple[Position, ...]


class AnalysisScheduler:
    """Runs engine scans and classification for one game session.

    All engine traffic goes through one lock, so a main-line scan and a
    branch scan never issue overlapping requests even if started from
    different threads.
    """

    __slots__ = (
        "_engine",
        "_rules",
        "_book",
        "_depth",
        "_cache",
        "_analyzing",
        "_engine_lock",
        "_settled_lock",
        "_settled_revision",
        "_settled",
    )

    def __init__(
        self,
        engine: IEngine,
        *,
        rules: MoveRules | None = None,
        book: OpeningBook | None = None,
        depth: int = DEFAULT_DEPTH,
        cache: AnalysisCache | None = None,
        analyzing: AnalyzingSet | None = None,
    ) -> None:
        self._engine = engine
        self._rules = rules or MoveRules()
        self._book = book
        self._depth = _clamp_depth(depth)
        self._cache = cache if cache is not None else AnalysisCache()
        self._analyzing = analyzing if analyzing is not None else AnalyzingSet()
        self._engine_lock = threading.Lock()
        # Latest main-line result per index, for the revision last scanned.
        self._settled_lock = threading.Lock()
        self._settled_revision = -1
        self._settled: dict[int, Position] = {}

    @property
    def cache(self) -> AnalysisCache:
        return self._cache

    @property
    def analyzing(self) -> AnalyzingSet:
        return self._analyzing

    @property
    def depth(self) -> int:
        return self._depth

    def set_depth(self, depth: int) -> None:
        """Takes effect on the next engine call."""
        self._depth = _clamp_depth(depth)

    # ── Main line ────────────────────────────────────────────────────────

    def scan_main_line(
        self,
        positions: Sequence[Position],
        *,
        revision: int,
        epoch: int,
        token: CancellationToken,
        on_update: UpdateCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[Position]:
        """Evaluate every position in order, then classify the whole line.

        Raises:
            AnalysisCancelled: If *token* is cancelled between steps.
        """
        working = list(positions)
        total = len(working)
        with self._settled_lock:
            if revision != self._settled_revision:
                self._settled_revision = revision
                self._settled = {}

        def publish(index: int, position: Position) -> None:
            with self._settled_lock:
                if revision == self._settled_revision:
                    self._settled[index] = position
            if on_update is not None:
                on_update(
                    PositionUpdate(
                        UpdateSource.MAIN_LINE,
                        index,
                        position.fen,
                        position,
                        revision,
                        epoch,
                    )
                )

        for index, position in enumerate(working):
            token.raise_if_cancelled()
            analyzed = self._analyze(position)
            working[index] = analyzed
            publish(index, analyzed)
            if on_progress is not None:
                on_progress(index + 1, total)

        token.raise_if_cancelled()
        classified = classify_line(working, rules=self._rules, book=self._book)
        for index in range(1, total):
            if classified[index] != working[index]:
                publish(index, classified[index])
        _LOGGER.debug("Main line scan %d finished (%d positions)", revision, total)
        return classified

    # ── Branch ───────────────────────────────────────────────────────────

    def scan_branch(
        self,
        snapshot: BranchSnapshot,
        *,
        token: CancellationToken,
        on_update: UpdateCallback | None = None,
    ) -> int:
        """Analyze the user-built suffix of *snapshot*.

        Cached boards are copied without touching the engine, and nothing at
        or before the branch point is published.  Returns the number of
        engine calls made.

        Raises:
            AnalysisCancelled: If *token* is cancelled between steps.
        """
        working = list(snapshot.positions)
        calls = 0

        def publish(index: int, position: Position) -> None:
            if on_update is not None:
                on_update(
                    PositionUpdate(
                        UpdateSource.BRANCH,
                        index,
                        position.fen,
                        position,
                        snapshot.revision,
                        snapshot.epoch,
                    )
                )

        for index in range(snapshot.branch_point_index + 1, len(working)):
            token.raise_if_cancelled()
            position = working[index]

            cached = self._cache.get(position.fen)
            if cached is not None:
                restored = position.with_analysis_from(cached)
                working[index] = restored
                if restored != position:
                    publish(index, restored)
                continue
            if position.analysis_failed:
                continue

            self._analyzing.add(position.fen)
            try:
                analyzed = self._analyze(position)
                calls += 1
                if index > 0:
                    previous = working[index - 1]
                    if (
                        not analyzed.analysis_failed
                        and not previous.is_scored
                        and not previous.analysis_failed
                    ):
                        # The branch point belongs to the main line: prefer its
                        # settled result and never write the prefix back.
                        previous = self._settled_position(
                            snapshot.revision, index - 1, previous
                        )
                        if not previous.is_scored and not previous.analysis_failed:
                            previous = self._analyze(previous)
                            calls += 1
                            self._cache.store(previous, snapshot.epoch)
                        working[index - 1] = previous
                    analyzed = resolve_classification(
                        previous,
                        analyzed,
                        rules=self._rules,
                        book=self._book,
                    )
                self._cache.store(analyzed, snapshot.epoch)
                working[index] = analyzed
                publish(index, analyzed)
            finally:
                self._analyzing.discard(position.fen)

        _LOGGER.debug(
            "Branch scan at revision %d made %d engine calls",
            snapshot.positions_revision,
            calls,
        )
        return calls

    # ── Alternative lines ────────────────────────────────────────────────

    def alternative_lines(self, fen: str, lines: int = 3) -> tuple[PvLine, ...]:
        """Ranked candidate lines for *fen*; empty if the engine fails."""
        with self._engine_lock:
            try:
                result = self._engine.evaluate_multipv(fen, self._depth, lines)
            except EngineError as exc:
                _LOGGER.warning("Multi-PV search failed for %s: %s", fen, exc)
                return ()
        return result.lines

    def close(self) -> None:
        with self._engine_lock:
            self._engine.close()

    # ── Internals ────────────────────────────────────────────────────────

    def _evaluate(self, fen: str) -> EngineResult | None:
        with self._engine_lock:
            try:
                return self._engine.evaluate(fen, self._depth)
            except EngineError as exc:
                _LOGGER.warning("Engine evaluation failed for %s: %s", fen, exc)
                return None

    def _settled_position(
        self, revision: int, index: int, position: Position
    ) -> Position:
        """Main-line result for *position* if a scan of *revision* produced one."""
        with self._settled_lock:
            if revision != self._settled_revision:
                return position
            settled = self._settled.get(index)
        if settled is None or settled.fen != position.fen:
            return position
        return settled

    def _analyze(self, position: Position) -> Position:
        result = self._evaluate(position.fen)
        if result is None:
            return position.with_failure()
        return position.with_engine_result(result.score, result.best_move)


def _clamp_depth(depth: int) -> int:
    return max(MIN_DEPTH, min(MAX_DEPTH, depth))
