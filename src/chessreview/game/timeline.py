"""Position timeline with one live alternate branch.

The timeline is an arena of positions plus an integer branch marker:

* linear: ``branch_point_index == -1`` and the live line is the imported game;
* branched: ``positions[0..k]`` is the untouched original prefix and
  ``positions[k+1..]`` a user-built suffix, ``k == branch_point_index``.

It is owned by a single thread.  Analysis results enter only through
:meth:`Timeline.apply_update`, which drops writes that no longer match.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from chessreview.analysis.models import Position, PositionUpdate, UpdateSource
from chessreview.analysis.scheduler import BranchSnapshot
from chessreview.core.rules import MoveRules


class Timeline:
    """Ordered positions of a game plus the branch the user is exploring."""

    __slots__ = (
        "_positions",
        "_original",
        "_branch_point",
        "_cursor",
        "_rules",
        "_revision",
        "_epoch",
        "_positions_revision",
    )

    def __init__(
        self,
        positions: Iterable[Position] = (),
        *,
        revision: int = 0,
        epoch: int = 0,
        rules: MoveRules | None = None,
    ) -> None:
        self._original: list[Position] = list(positions)
        self._positions: list[Position] = list(self._original)
        self._branch_point = -1
        self._cursor = 0
        self._rules = rules or MoveRules()
        self._revision = revision
        self._epoch = epoch
        self._positions_revision = 0

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def positions(self) -> tuple[Position, ...]:
        return tuple(self._positions)

    @property
    def original_positions(self) -> tuple[Position, ...]:
        return tuple(self._original)

    @property
    def branch_point_index(self) -> int:
        return self._branch_point

    @property
    def is_branched(self) -> bool:
        return self._branch_point >= 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Position | None:
        if not self._positions:
            return None
        return self._positions[self._cursor]

    @property
    def revision(self) -> int:
        """Analysis revision of the game this timeline was imported as."""
        return self._revision

    @property
    def epoch(self) -> int:
        """Branch episode; bumped every time a branch is discarded."""
        return self._epoch

    @property
    def positions_revision(self) -> int:
        return self._positions_revision

    @property
    def is_empty(self) -> bool:
        return not self._positions

    def __len__(self) -> int:
        return len(self._positions)

    def __getitem__(self, index: int) -> Position:
        return self._positions[index]

    def __iter__(self) -> Iterator[Position]:
        return iter(tuple(self._positions))

    # ── Navigation ───────────────────────────────────────────────────────

    def move_cursor(self, index: int) -> bool:
        """Move the cursor (clamped); returns ``True`` if a branch was reverted."""
        if not self._positions:
            return False
        self._cursor = max(0, min(index, len(self._positions) - 1))
        return self.revert_if_at_or_before_branch(self._cursor)

    def revert_if_at_or_before_branch(self, cursor: int) -> bool:
        """Discard the branch when *cursor* is at or before the branch point."""
        if not self.is_branched or cursor > self._branch_point:
            return False
        self._positions = list(self._original)
        self._branch_point = -1
        self._epoch += 1
        self._positions_revision += 1
        self._cursor = min(cursor, len(self._positions) - 1)
        return True

    # ── Branching ────────────────────────────────────────────────────────

    def append_move(self, uci: str) -> Position:
        """Play *uci* from the cursor, replacing everything after it.

        Raises:
            ValueError: If the timeline is empty or the move is illegal.
        """
        if not self._positions:
            raise ValueError("Cannot play a move on an empty timeline")
        base = self._positions[self._cursor]
        fen = self._rules.apply_move(base.fen, uci)
        position = Position(
            fen=fen,
            played_move=uci,
            san=self._rules.uci_to_san(base.fen, uci),
        )
        self._start_branch()
        self._truncate_after_cursor()
        self._positions.append(position)
        self._cursor = len(self._positions) - 1
        self._positions_revision += 1
        return position

    def explore_line(self, pv: Sequence[str], upto_index: int) -> list[Position]:
        """Replay ``pv[0..upto_index]`` from the cursor as a new branch.

        Replay stops at the first illegal move; the cursor ends on the last
        position added.  When no move can be played the timeline is left
        untouched.
        """
        if not self._positions:
            return []

        fen = self._positions[self._cursor].fen
        added: list[Position] = []
        for uci in pv[: max(0, upto_index + 1)]:
            try:
                next_fen = self._rules.apply_move(fen, uci)
            except ValueError:
                break
            added.append(
                Position(
                    fen=next_fen,
                    played_move=uci,
                    san=self._rules.uci_to_san(fen, uci),
                )
            )
            fen = next_fen
        if not added:
            return []

        self._start_branch()
        self._truncate_after_cursor()
        self._positions.extend(added)
        self._cursor = len(self._positions) - 1
        self._positions_revision += 1
        return added

    def branch_snapshot(self) -> BranchSnapshot | None:
        if not self.is_branched:
            return None
        return BranchSnapshot(
            revision=self._revision,
            epoch=self._epoch,
            positions_revision=self._positions_revision,
            branch_point_index=self._branch_point,
            positions=tuple(self._positions),
        )

    # ── Analysis results ─────────────────────────────────────────────────

    def apply_update(self, update: PositionUpdate) -> bool:
        """Write an analysis result; returns ``False`` for stale writes."""
        if update.revision != self._revision:
            return False
        if update.source is UpdateSource.MAIN_LINE:
            return self._apply_main_line(update)
        return self._apply_branch(update)

    def _apply_main_line(self, update: PositionUpdate) -> bool:
        index = update.index
        if not 0 <= index < len(self._original):
            return False
        if self._original[index].fen != update.fen:
            return False
        self._original[index] = update.position
        shared = not self.is_branched or index <= self._branch_point
        if shared and index < len(self._positions):
            self._positions[index] = update.position
        return True

    def _apply_branch(self, update: PositionUpdate) -> bool:
        if update.epoch != self._epoch or not self.is_branched:
            return False
        index = update.index
        # The prefix up to the branch point is owned by the main line.
        if not self._branch_point < index < len(self._positions):
            return False
        if self._positions[index].fen != update.fen:
            return False
        self._positions[index] = update.position
        return True

    # ── Internals ────────────────────────────────────────────────────────

    def _start_branch(self) -> None:
        if not self.is_branched:
            self._branch_point = self._cursor

    def _truncate_after_cursor(self) -> None:
        del self._positions[self._cursor + 1 :]
