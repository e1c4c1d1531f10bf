"""Live play against the engine: humanized move choice and stale-result guard."""

from chesslab.play.guard import PositionFingerprint, StaleResultGuard
from chesslab.play.humanizer import BlunderModel, HumanizedMoveSelector, blunder_model
from chesslab.play.opponent import EngineOpponent

__all__ = [
    "BlunderModel",
    "EngineOpponent",
    "HumanizedMoveSelector",
    "PositionFingerprint",
    "StaleResultGuard",
    "blunder_model",
]
