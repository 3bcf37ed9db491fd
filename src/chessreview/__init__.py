"""Chess game review: engine-backed move classification with live branches."""

__version__ = "0.1.0"
