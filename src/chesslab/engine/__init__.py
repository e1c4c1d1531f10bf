"""UCI engine package: protocol parsing, MultiPV collection and the session."""

from chesslab.engine.collector import MultiPVCollector
from chesslab.engine.models import (
    MATE_SCORE,
    CandidateLine,
    EngineRequest,
    HandshakeState,
    PendingOutcome,
    RequestOutcome,
    Score,
)
from chesslab.engine.process import UciProcess
from chesslab.engine.session import EngineSession, EngineTransport, SessionEvents
from chesslab.engine.strength import (
    SKILL_MAX,
    SKILL_MIN,
    EngineStrength,
    normalize_skill,
    strength_for_skill,
)

__all__ = [
    "MATE_SCORE",
    "SKILL_MAX",
    "SKILL_MIN",
    "CandidateLine",
    "EngineRequest",
    "EngineSession",
    "EngineStrength",
    "EngineTransport",
    "HandshakeState",
    "MultiPVCollector",
    "PendingOutcome",
    "RequestOutcome",
    "Score",
    "SessionEvents",
    "UciProcess",
    "normalize_skill",
    "strength_for_skill",
]
