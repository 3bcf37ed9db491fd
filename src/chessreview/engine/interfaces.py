"""Shared engine result models and protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class EngineError(Exception):
    """Raised when the engine process fails or replies with garbage."""


@dataclass(slots=True, frozen=True)
class EngineResult:
    """Score and best move for one position.

    ``score`` is ``"0.34"`` (pawns) or ``"mate N"``, relative to the side
    to move.
    """

    score: str
    best_move: str | None


@dataclass(slots=True, frozen=True)
class PvLine:
    """One ranked principal variation of a multi-PV search."""

    score: str
    move: str | None
    pv: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class MultiPvResult:
    score: str
    best_move: str | None
    lines: tuple[PvLine, ...] = field(default_factory=tuple)


class IEngine(Protocol):
    """Protocol for the evaluation oracle used by the scheduler.

    Implementations are stateful and serial: one call at a time.
    """

    def evaluate(self, fen: str, depth: int) -> EngineResult: ...

    def evaluate_multipv(self, fen: str, depth: int, lines: int) -> MultiPvResult: ...

    def close(self) -> None: ...
