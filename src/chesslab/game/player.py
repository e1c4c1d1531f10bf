"""The human side of a live game."""

from __future__ import annotations

import chess

from chesslab.game.interfaces import IPlayer


class HumanPlayer(IPlayer):
    """Moves arrive from the user through ``GameController.submit_move``."""

    __slots__ = ()

    def __init__(self, color: chess.Color, name: str = "") -> None:
        super().__init__(color, name or chess.COLOR_NAMES[color].capitalize())

    @property
    def is_human(self) -> bool:
        return True

    def request_move(self, board: chess.Board) -> None:
        del board  # the user is prompted by the UI, not by the player
