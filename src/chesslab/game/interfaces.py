"""Contracts between the game controller and the two sides of a game."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum, auto

import chess


class GamePhase(IntEnum):
    """Finite-state-machine states for a live game."""

    NOT_STARTED = auto()
    AWAITING_MOVE = auto()
    THINKING = auto()  # engine is computing
    GAME_OVER = auto()


class IPlayer(ABC):
    """One side of a live game.

    The controller calls :meth:`request_move` when the side is to move.
    A human side answers later through ``GameController.submit_move``; an
    engine side starts a search and submits the move itself. :meth:`cancel`
    is called when the position the side was asked about is abandoned by an
    undo or a new game.
    """

    __slots__ = ("_color", "_name")

    def __init__(self, color: chess.Color, name: str) -> None:
        self._color = color
        self._name = name

    @property
    def color(self) -> chess.Color:
        return self._color

    @property
    def name(self) -> str:
        return self._name

    @property
    @abstractmethod
    def is_human(self) -> bool: ...

    @abstractmethod
    def request_move(self, board: chess.Board) -> None:
        """The side is to move on *board*; the board must not be mutated."""

    def cancel(self) -> None:
        """Abandon work started by :meth:`request_move`."""
