"""Command-line entry point: review a PGN file headlessly."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from chessreview.analysis.evaluation import Side, side_to_move
from chessreview.analysis.models import (
    Classification,
    ClassificationStats,
    Position,
    SideStats,
)
from chessreview.analysis.scheduler import MAX_DEPTH, MIN_DEPTH, AnalysisScheduler
from chessreview.config import ReviewSettings
from chessreview.core.opening_book import OpeningBook
from chessreview.core.rules import MoveRules
from chessreview.engine.interfaces import IEngine, PvLine
from chessreview.engine.uci import UciEngine
from chessreview.game.controller import ReviewController

_LOGGER = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> tuple[Path, ReviewSettings, bool]:
    defaults = ReviewSettings()
    parser = argparse.ArgumentParser(
        prog="chessreview",
        description="Classify every move of a PGN game with a UCI engine.",
    )
    parser.add_argument("pgn", type=Path, help="PGN file to review")
    parser.add_argument(
        "--engine",
        default=defaults.engine_path,
        help="UCI engine executable (default: %(default)s)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=defaults.depth,
        help=f"search depth, clamped to {MIN_DEPTH}..{MAX_DEPTH} "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--lines",
        type=int,
        default=defaults.multipv_lines,
        help="candidate lines shown with --alternatives (default: %(default)s)",
    )
    parser.add_argument(
        "--book",
        type=Path,
        default=defaults.book_path,
        help="opening book JSON mapping board FENs to names "
        "(default: a small bundled sample of common openings)",
    )
    parser.add_argument(
        "--alternatives",
        action="store_true",
        help="also print the engine's candidate lines for the final position",
    )
    parser.add_argument(
        "--log-level",
        default=defaults.log_level,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    args = parser.parse_args(argv)
    settings = ReviewSettings(
        engine_path=args.engine,
        depth=args.depth,
        multipv_lines=args.lines,
        book_path=args.book,
        log_level=args.log_level,
    )
    return args.pgn, settings, args.alternatives


# ── Report formatting ────────────────────────────────────────────────────────


def _move_label(previous: Position, current: Position) -> str:
    fields = previous.fen.split()
    number = fields[5] if len(fields) > 5 else "1"
    dots = "." if side_to_move(previous.fen) is Side.WHITE else "..."
    return f"{number}{dots} {current.san or current.played_move or '?'}"


def format_move_line(previous: Position, current: Position) -> str:
    """One report row: move, engine score and classification."""
    label = _move_label(previous, current)
    if current.analysis_failed:
        return f"{label:<14} {'n/a':>8}  analysis unavailable"
    score = current.score if current.score is not None else "-"
    row = f"{label:<14} {score:>8}"
    if current.classification is not None:
        row += f"  {current.classification}{current.classification.nag}"
    if current.opening_name:
        row += f"  ({current.opening_name})"
    return row


def _format_side(name: str, stats: SideStats) -> str:
    accuracy = "n/a" if stats.accuracy is None else f"{stats.accuracy:.1f}%"
    counts = ", ".join(
        f"{classification}: {stats.count(classification)}"
        for classification in Classification
        if stats.count(classification)
    )
    return f"{name}: accuracy {accuracy}; {counts or 'no classified moves'}"


def format_report(
    positions: Sequence[Position],
    stats: ClassificationStats,
) -> list[str]:
    lines = [
        format_move_line(previous, current)
        for previous, current in zip(positions, positions[1:])
    ]
    lines.append("")
    lines.append(_format_side("White", stats.white))
    lines.append(_format_side("Black", stats.black))
    return lines


def format_alternatives(
    rules: MoveRules,
    fen: str,
    candidates: Sequence[PvLine],
) -> list[str]:
    lines = ["", "Candidate lines:"]
    for rank, candidate in enumerate(candidates, start=1):
        san = " ".join(rules.pv_to_san(fen, candidate.pv))
        lines.append(f"{rank}. [{candidate.score}] {san}")
    return lines


# ── Session wiring ───────────────────────────────────────────────────────────


def run_review(
    pgn_text: str,
    settings: ReviewSettings,
    *,
    engine: IEngine | None = None,
    alternatives: bool = False,
    out: TextIO = sys.stdout,
) -> int:
    """Analyze *pgn_text* to completion and print the report to *out*.

    Runs a Qt event loop until the main-line scan finishes; returns the
    process exit code.
    """
    from PyQt6.QtCore import QCoreApplication

    from chessreview.session.analysis_session import AnalysisSession

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    rules = MoveRules()
    scheduler = AnalysisScheduler(
        engine if engine is not None else UciEngine(settings.engine_path),
        rules=rules,
        book=OpeningBook.from_json(settings.book_path),
        depth=settings.depth,
    )
    controller = ReviewController(rules=rules)
    exit_code = 0

    def finish(code: int) -> None:
        nonlocal exit_code
        exit_code = code
        app.quit()

    def on_failed(message: str) -> None:
        print(f"Analysis failed: {message}", file=out)
        finish(1)

    def on_analysis_finished(stats: ClassificationStats) -> None:
        timeline = controller.timeline
        for line in format_report(timeline.original_positions, stats):
            print(line, file=out)
        if alternatives:
            controller.go_to(len(timeline) - 1)
            if controller.request_alternative_lines(settings.multipv_lines):
                return
        finish(0)

    def on_alternative_lines(fen: str, candidates: tuple[PvLine, ...]) -> None:
        for line in format_alternatives(rules, fen, candidates):
            print(line, file=out)
        finish(0)

    session = AnalysisSession(
        scheduler,
        on_update=controller.apply_update,
        on_progress=controller.report_progress,
        on_finished=controller.finish_main_line,
        on_failed=on_failed,
        on_alternative_lines=controller.receive_alternative_lines,
    )
    controller.attach_runner(session)
    controller.events.on_analysis_finished.append(on_analysis_finished)
    controller.events.on_alternative_lines.append(on_alternative_lines)
    controller.events.on_progress.append(
        lambda done, total: _LOGGER.info("Analyzed %d/%d positions", done, total)
    )
    controller.events.on_import_failed.append(lambda message: print(message, file=out))

    session.setup()
    try:
        timeline = controller.import_game(pgn_text)
        if timeline.is_empty:
            return 1
        app.exec()
    finally:
        session.shutdown()
    return exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """Launch the review CLI."""
    pgn_path, settings, alternatives = _parse_args(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        pgn_text = pgn_path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Cannot read {pgn_path}: {exc}", file=sys.stderr)
        sys.exit(2)
    sys.exit(run_review(pgn_text, settings, alternatives=alternatives))


if __name__ == "__main__":
    main()
