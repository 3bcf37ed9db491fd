"""Engine adapters."""

from chessreview.engine.interfaces import (
    EngineError,
    EngineResult,
    IEngine,
    MultiPvResult,
    PvLine,
)
from chessreview.engine.uci import UciEngine

__all__ = [
    "EngineError",
    "EngineResult",
    "IEngine",
    "MultiPvResult",
    "PvLine",
    "UciEngine",
]
