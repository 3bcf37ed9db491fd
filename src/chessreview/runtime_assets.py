"""Helpers for locating runtime asset files."""

from __future__ import annotations

from pathlib import Path

_PACKAGE_ASSETS_DIR = Path(__file__).resolve().parent / "assets"


def assets_dir() -> Path:
    """Return the directory holding bundled data files."""
    return _PACKAGE_ASSETS_DIR


def asset_path(*parts: str) -> Path:
    """Build an absolute path inside the runtime assets directory."""
    return assets_dir().joinpath(*parts)
