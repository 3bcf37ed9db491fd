"""Qt worker-thread plumbing for background analysis."""

from chessreview.session.analysis_session import AnalysisSession

__all__ = ["AnalysisSession"]
