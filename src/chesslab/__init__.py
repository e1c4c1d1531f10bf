"""Humanized engine play and post-game review over a UCI engine."""

__version__ = "0.1.0"
