"""Shared engine session models."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum, auto

_LOGGER = logging.getLogger(__name__)

MATE_SCORE = 100_000


class HandshakeState(IntEnum):
    """Readiness of the engine process to accept a search."""

    NOT_READY = auto()
    READY = auto()


@dataclass(slots=True, frozen=True)
class Score:
    """Engine score from the side-to-move perspective.

    Exactly one of ``cp`` and ``mate`` is set.
    """

    cp: int | None = None
    mate: int | None = None

    def __post_init__(self) -> None:
        if (self.cp is None) == (self.mate is None):
            msg = "Score needs exactly one of cp or mate"
            raise ValueError(msg)

    @property
    def is_mate(self) -> bool:
        return self.mate is not None

    def value(self) -> int:
        """Plain integer with mates saturated to ``±MATE_SCORE``.

        Shorter mates rank above longer ones; being mated ranks below
        every centipawn score.
        """
        if self.cp is not None:
            return self.cp
        mate = self.mate or 0
        if mate > 0:
            return MATE_SCORE - mate
        return -MATE_SCORE - mate

    def negated(self) -> Score:
        if self.cp is not None:
            return Score(cp=-self.cp)
        return Score(mate=-(self.mate or 0))

    def __str__(self) -> str:
        if self.cp is not None:
            return f"{self.cp / 100:+.2f}"
        return f"#{self.mate}"


@dataclass(slots=True, frozen=True)
class EngineRequest:
    """One search issued to the engine."""

    fen: str
    time_budget_ms: int
    line_count: int = 1
    depth_target: int | None = None


@dataclass(slots=True, frozen=True)
class CandidateLine:
    """A ranked principal variation reported by the engine."""

    rank: int
    move: str
    score: Score | None
    depth: int


@dataclass(slots=True, frozen=True)
class RequestOutcome:
    """Ranked candidates produced once per :class:`EngineRequest`.

    ``cancelled`` is set when the search was stopped through
    :meth:`EngineSession.cancel` before it produced a complete result.
    """

    request: EngineRequest | None
    lines: tuple[CandidateLine, ...] = ()
    complete: bool = False
    cancelled: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def best(self) -> CandidateLine | None:
        return self.lines[0] if self.lines else None

    @property
    def best_move(self) -> str | None:
        return self.lines[0].move if self.lines else None


OutcomeCallback = Callable[[RequestOutcome], None]


class PendingOutcome:
    """Handle for a request result that resolves exactly once.

    Callbacks added after resolution run immediately.
    """

    __slots__ = ("_request", "_outcome", "_callbacks")

    def __init__(self, request: EngineRequest | None) -> None:
        self._request = request
        self._outcome: RequestOutcome | None = None
        self._callbacks: list[OutcomeCallback] = []

    @classmethod
    def resolved(cls, outcome: RequestOutcome) -> PendingOutcome:
        pending = cls(outcome.request)
        pending._outcome = outcome
        return pending

    @property
    def request(self) -> EngineRequest | None:
        return self._request

    def done(self) -> bool:
        return self._outcome is not None

    def result(self) -> RequestOutcome | None:
        return self._outcome

    def add_done_callback(self, callback: OutcomeCallback) -> None:
        if self._outcome is not None:
            callback(self._outcome)
            return
        self._callbacks.append(callback)

    def resolve(self, outcome: RequestOutcome) -> bool:
        """Store *outcome* and notify listeners. Later calls are ignored."""
        if self._outcome is not None:
            _LOGGER.debug("Ignoring second resolution for %s", self._request)
            return False
        self._outcome = outcome
        callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            cb(outcome)
        return True
