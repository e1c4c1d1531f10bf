"""Game management layer: controller, players, phase state machine.

Quick start::

    import chess
    from chesslab.game import GameController, HumanPlayer

    ctrl = GameController()
    ctrl.new_game(
        white=HumanPlayer(chess.WHITE, "Alice"),
        black=HumanPlayer(chess.BLACK, "Bob"),
    )
    ctrl.submit_move("e2e4")
"""

from chesslab.game.controller import GameController, GameEvents
from chesslab.game.interfaces import GamePhase, IPlayer
from chesslab.game.player import HumanPlayer

__all__ = [
    # Interfaces
    "GamePhase",
    "IPlayer",
    # Concrete
    "GameController",
    "GameEvents",
    "HumanPlayer",
]
