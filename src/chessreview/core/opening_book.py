"""Read-only opening book keyed by board-only FEN."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

_LOGGER = logging.getLogger(__name__)


class OpeningBook:
    """Lookup table from piece placement to opening name.

    Built once at startup and handed to whoever needs it; never mutated.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_json(cls, path: Path) -> OpeningBook:
        """Load ``{"<board fen>": "<opening name>", ...}`` from *path*.

        A missing or malformed file yields an empty book so analysis simply
        runs without Book labels.
        """
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            _LOGGER.warning("Cannot load opening book %s: %s", path, exc)
            return cls()
        if not isinstance(raw, dict):
            _LOGGER.warning("Opening book %s is not a JSON object", path)
            return cls()
        entries = {
            str(board).split(" ", 1)[0]: str(name) for board, name in raw.items()
        }
        _LOGGER.info("Loaded %d opening positions from %s", len(entries), path)
        return cls(entries)

    def lookup(self, board_fen: str) -> str | None:
        return self._entries.get(board_fen.split(" ", 1)[0])

    def __contains__(self, board_fen: object) -> bool:
        return isinstance(board_fen, str) and self.lookup(board_fen) is not None

    def __len__(self) -> int:
        return len(self._entries)
