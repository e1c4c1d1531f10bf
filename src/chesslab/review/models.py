"""Data models produced by game review."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum, auto

import chess

from chesslab.engine.models import Score


class ReviewPhase(IntEnum):
    """Review session lifecycle."""

    IDLE = auto()
    RUNNING = auto()
    COMPLETE = auto()
    CANCELLED = auto()


class MistakeSeverity(StrEnum):
    """Severity tiers for an evaluation swing against the mover."""

    SEVERE = "Blunder"
    MODERATE = "Mistake"
    MINOR = "Inaccuracy"

    @property
    def nag(self) -> str:
        """Chess NAG annotation symbol."""
        return _SEVERITY_NAG[self]


_SEVERITY_NAG: dict[MistakeSeverity, str] = {
    MistakeSeverity.SEVERE: "??",
    MistakeSeverity.MODERATE: "?",
    MistakeSeverity.MINOR: "?!",
}


@dataclass(slots=True, frozen=True)
class ReviewPly:
    """Position after one ply of the reviewed game; index 0 is the start."""

    index: int
    fen: str
    san: str | None = None
    uci: str | None = None
    mover: chess.Color | None = None

    @property
    def move_label(self) -> str:
        """``12. Nf3`` / ``12... Nf6`` style label, empty for the start."""
        if self.san is None:
            return ""
        board = chess.Board(self.fen)
        # fullmove_number counts the position after the move.
        if self.mover == chess.WHITE:
            return f"{board.fullmove_number}. {self.san}"
        return f"{board.fullmove_number - 1}... {self.san}"


@dataclass(slots=True, frozen=True)
class EvalPoint:
    """Engine evaluation of one ply's position.

    ``raw`` is from the side to move; ``absolute`` is positive when the
    side that moved first in the game is better.
    """

    raw: Score
    absolute: int


@dataclass(slots=True, frozen=True)
class MistakeRecord:
    """An evaluation swing against the side that played ``ply``."""

    ply: int
    swing: int
    severity: MistakeSeverity
    mover: chess.Color
    san: str


@dataclass(slots=True, frozen=True)
class SideReviewSummary:
    """Per-side mistake counts."""

    moves: int
    severe: int = 0
    moderate: int = 0
    minor: int = 0


@dataclass(slots=True, frozen=True)
class ReviewReport:
    """Snapshot of a review session."""

    phase: ReviewPhase
    first_mover: chess.Color
    plies: tuple[ReviewPly, ...]
    evals: tuple[EvalPoint | None, ...]
    mistakes: tuple[MistakeRecord, ...]
    white: SideReviewSummary
    black: SideReviewSummary

    @property
    def total_plies(self) -> int:
        """Number of moves played (the start position is not a ply)."""
        return max(0, len(self.plies) - 1)

    @property
    def analyzed(self) -> int:
        return sum(1 for point in self.evals if point is not None)

    def eval_curve(self) -> list[int]:
        """Absolute evaluations per ply, unset points as 0."""
        return [point.absolute if point is not None else 0 for point in self.evals]
