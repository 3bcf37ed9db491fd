"""White-centric engine evaluations parsed from raw engine score strings."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum, StrEnum

_MATE_NUMBER_RE = re.compile(r"[+-]?\d+")

# Stands in for "mate found, distance unknown" (engine reported mate 0).
MATE_SENTINEL = 999.0


class Side(StrEnum):
    """The side that made (or is about to make) a move."""

    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> Side:
        return Side.BLACK if self is Side.WHITE else Side.WHITE

    @property
    def sign(self) -> float:
        """+1 for White, -1 for Black."""
        return 1.0 if self is Side.WHITE else -1.0


class EvalKind(Enum):
    CENTIPAWN = "centipawn"
    MATE = "mate"


@dataclass(slots=True, frozen=True)
class Eval:
    """An engine score where positive values always favour White."""

    kind: EvalKind
    value: float

    @classmethod
    def centipawns(cls, value: float) -> Eval:
        return cls(EvalKind.CENTIPAWN, float(value))

    @classmethod
    def mate(cls, value: float) -> Eval:
        return cls(EvalKind.MATE, float(value))

    @property
    def is_mate(self) -> bool:
        return self.kind is EvalKind.MATE

    def for_side(self, side: Side) -> float:
        """Return the value seen from *side*'s perspective."""
        return self.value * side.sign


def is_white_to_move(fen: str) -> bool:
    parts = fen.split(" ")
    return len(parts) > 1 and parts[1] == "w"


def side_to_move(fen: str) -> Side:
    return Side.WHITE if is_white_to_move(fen) else Side.BLACK


def parse_evaluation(raw: str | None, fen: str) -> Eval | None:
    """Parse a raw engine score relative to the side to move in *fen*.

    Accepts a decimal pawn value (``"0.34"``, ``"-1.5"``) or a mate form
    (``"mate 3"``, ``"mate -2"``).  The result is normalised to White's
    perspective.  Returns ``None`` when *raw* is missing, unparseable or
    not a finite number.
    """
    if raw is None:
        return None
    white_to_move = is_white_to_move(fen)
    text = raw.strip().lower()

    if text.startswith("mate"):
        match = _MATE_NUMBER_RE.search(text)
        n = int(match.group()) if match else 0
        if n == 0:
            value = -MATE_SENTINEL if white_to_move else MATE_SENTINEL
        else:
            value = float(n) if white_to_move else float(-n)
        return Eval.mate(value)

    try:
        pawns = float(text)
    except ValueError:
        return None
    if not math.isfinite(pawns):
        return None
    cp = pawns * 100.0
    return Eval.centipawns(cp if white_to_move else -cp)
