"""Per-branch analysis cache and the set of positions awaiting the engine.

Both structures are written by the scheduler's worker thread and read by
the owning thread, so every access goes through a lock.
"""

from __future__ import annotations

import threading

from chessreview.analysis.models import Position


def cache_key(fen: str) -> str:
    """Board part of *fen*: placement, side to move, castling, en passant.

    Move counters are dropped so transpositions share one entry.
    """
    return " ".join(fen.split()[:4])


class AnalysisCache:
    """Normalized FEN -> last analyzed :class:`Position` for one branch episode.

    Entries are tagged with the episode (``epoch``) they were computed in;
    writes carrying an older epoch are dropped.
    """

    __slots__ = ("_entries", "_epoch", "_lock")

    def __init__(self, epoch: int = 0) -> None:
        self._entries: dict[str, Position] = {}
        self._epoch = epoch
        self._lock = threading.Lock()

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    def reset(self, epoch: int) -> None:
        """Drop every entry and start a new episode."""
        with self._lock:
            self._entries.clear()
            self._epoch = epoch

    def get(self, fen: str) -> Position | None:
        with self._lock:
            return self._entries.get(cache_key(fen))

    def store(self, position: Position, epoch: int) -> bool:
        """Store *position*; returns ``False`` if *epoch* is stale."""
        with self._lock:
            if epoch != self._epoch:
                return False
            self._entries[cache_key(position.fen)] = position
            return True

    def __contains__(self, fen: object) -> bool:
        if not isinstance(fen, str):
            return False
        with self._lock:
            return cache_key(fen) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class AnalyzingSet:
    """FENs with an engine request in flight.

    Counts are kept per FEN so two scans waiting on the same position do not
    clear each other's marker.
    """

    __slots__ = ("_counts", "_lock")

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, fen: str) -> None:
        with self._lock:
            self._counts[fen] = self._counts.get(fen, 0) + 1

    def discard(self, fen: str) -> None:
        with self._lock:
            remaining = self._counts.get(fen, 0) - 1
            if remaining > 0:
                self._counts[fen] = remaining
            else:
                self._counts.pop(fen, None)

    def __contains__(self, fen: object) -> bool:
        with self._lock:
            return fen in self._counts

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._counts)

    def clear(self) -> None:
        with self._lock:
            self._counts.clear()
