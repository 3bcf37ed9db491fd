"""Review layer: timeline, controller and the runner interface.

Quick start::

    from chessreview.game import ReviewController

    ctrl = ReviewController(runner)
    ctrl.import_game(pgn_text)
    ctrl.go_to(10)
    ctrl.play_move("g1", "f3")
"""

from chessreview.game.controller import ReviewController, ReviewEvents
from chessreview.game.interfaces import IAnalysisRunner
from chessreview.game.timeline import Timeline

__all__ = [
    "IAnalysisRunner",
    "ReviewController",
    "ReviewEvents",
    "Timeline",
]
