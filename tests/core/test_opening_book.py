"""Tests for the opening book."""

from __future__ import annotations

from pathlib import Path

from chessreview.core.opening_book import OpeningBook
from chessreview.runtime_assets import asset_path

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR"


def test_bundled_book_loads() -> None:
    book = OpeningBook.from_json(asset_path("openings.json"))
    assert len(book) > 0
    assert book.lookup(AFTER_E4) == "King's Pawn Game"


def test_lookup_ignores_fen_fields_after_placement() -> None:
    book = OpeningBook({AFTER_E4: "King's Pawn Game"})
    assert book.lookup(f"{AFTER_E4} b KQkq - 0 1") == "King's Pawn Game"
    assert f"{AFTER_E4} b KQkq e3 0 1" in book


def test_unknown_position() -> None:
    assert OpeningBook().lookup(AFTER_E4) is None
    assert AFTER_E4 not in OpeningBook()


def test_missing_file_gives_empty_book(tmp_path: Path) -> None:
    assert len(OpeningBook.from_json(tmp_path / "missing.json")) == 0


def test_malformed_file_gives_empty_book(tmp_path: Path) -> None:
    path = tmp_path / "book.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert len(OpeningBook.from_json(path)) == 0


def test_keys_are_normalized_to_placement(tmp_path: Path) -> None:
    path = tmp_path / "book.json"
    path.write_text(f'{{"{AFTER_E4} b KQkq - 0 1": "E4"}}', encoding="utf-8")
    assert OpeningBook.from_json(path).lookup(AFTER_E4) == "E4"
