"""Discard engine results computed for a position that is no longer live."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Protocol

_LOGGER = logging.getLogger(__name__)


class LiveGame(Protocol):
    """What the guard needs to know about the live game."""

    @property
    def generation(self) -> int: ...

    @property
    def fen(self) -> str: ...

    @property
    def move_history(self) -> list[object]: ...


@dataclass(slots=True, frozen=True)
class PositionFingerprint:
    """Identity of a live game state at one instant."""

    digest: str

    @classmethod
    def of(cls, game: LiveGame) -> PositionFingerprint:
        return cls.compute(game.generation, game.fen, len(game.move_history))

    @classmethod
    def compute(cls, generation: int, fen: str, ply_count: int) -> PositionFingerprint:
        h = hashlib.sha256(usedforsecurity=False)
        h.update(f"{generation}\n{ply_count}\n{fen}".encode())
        return cls(h.hexdigest())


class StaleResultGuard:
    """Remembers the fingerprint of the last request and checks it on arrival."""

    __slots__ = ("_game", "_captured")

    def __init__(self, game: LiveGame) -> None:
        self._game = game
        self._captured: PositionFingerprint | None = None

    def capture(self) -> PositionFingerprint:
        fingerprint = PositionFingerprint.of(self._game)
        self._captured = fingerprint
        return fingerprint

    def is_current(self, fingerprint: PositionFingerprint | None = None) -> bool:
        expected = fingerprint if fingerprint is not None else self._captured
        if expected is None:
            return False
        if expected != PositionFingerprint.of(self._game):
            _LOGGER.debug("Discarding stale engine result")
            return False
        return True

    def clear(self) -> None:
        self._captured = None
