"""GameController: the central orchestrator of a live game.

Coordinates the players and the python-chess board that tracks rules and
state. Emits events via simple callbacks so the UI / tests can subscribe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import chess

from chesslab.game.interfaces import GamePhase, IPlayer

_LOGGER = logging.getLogger(__name__)

# ── Event definitions ────────────────────────────────────────────────────────

MoveCallback = Callable[[chess.Move, str, chess.Board], None]  # move, san, board
GameOverCallback = Callable[[str], None]  # result, e.g. "1-0"
PhaseCallback = Callable[[GamePhase], None]


@dataclass
class GameEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_move: list[MoveCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)
    on_phase_changed: list[PhaseCallback] = field(default_factory=list)


# ── Controller ───────────────────────────────────────────────────────────────


class GameController:
    """Runs one game between a human and the engine opponent.

    Methods are called from a single thread (the Qt event loop); engine
    moves arrive through :meth:`submit_move` like human ones.
    """

    __slots__ = (
        "_board",
        "_players",
        "_phase",
        "_generation",
        "events",
    )

    def __init__(self) -> None:
        self._board = chess.Board()
        self._players: dict[chess.Color, IPlayer] = {}
        self._phase = GamePhase.NOT_STARTED
        self._generation = 0
        self.events = GameEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def board(self) -> chess.Board:
        """Live board. Callers must not push moves on it directly."""
        return self._board

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def generation(self) -> int:
        """Incremented on every new game."""
        return self._generation

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def start_fen(self) -> str:
        return self._board.root().fen()

    @property
    def move_history(self) -> list[chess.Move]:
        return list(self._board.move_stack)

    @property
    def is_game_over(self) -> bool:
        return self._board.is_game_over()

    @property
    def current_player(self) -> IPlayer | None:
        return self._players.get(self._board.turn)

    def player(self, color: chess.Color) -> IPlayer | None:
        return self._players.get(color)

    # ── Game flow ────────────────────────────────────────────────────────

    def new_game(self, white: IPlayer, black: IPlayer, fen: str | None = None) -> None:
        cp = self.current_player
        if cp is not None and not cp.is_human:
            cp.cancel()

        self._players = {chess.WHITE: white, chess.BLACK: black}
        self._board = chess.Board(fen) if fen else chess.Board()
        self._generation += 1
        self._set_phase(GamePhase.AWAITING_MOVE)
        self._prompt_current_player()

    def submit_move(self, uci: str) -> bool:
        """Apply a coordinate move such as ``e2e4`` or ``e7e8q``.

        A promotion without a piece is promoted to a queen.
        """
        if self._phase not in (GamePhase.AWAITING_MOVE, GamePhase.THINKING):
            return False
        if self._board.is_game_over():
            return False

        move = self._resolve_move(uci)
        if move is None:
            return False

        san = self._board.san(move)
        self._board.push(move)
        self._emit_move(move, san)

        if self._board.is_game_over():
            self._emit_game_over(self._board.result())
            return True

        self._prompt_current_player()
        return True

    def undo_move(self) -> bool:
        """Take back moves until it is a human's turn again."""
        if not self._board.move_stack:
            return False

        cp = self.current_player
        if cp is not None and not cp.is_human:
            cp.cancel()

        self._board.pop()
        cp = self.current_player
        if cp is not None and not cp.is_human and self._board.move_stack:
            self._board.pop()

        self._set_phase(GamePhase.AWAITING_MOVE)
        self._prompt_current_player()
        return True

    def status_text(self) -> str:
        board = self._board
        turn = "White" if board.turn == chess.WHITE else "Black"
        if board.is_checkmate():
            winner = "Black" if board.turn == chess.WHITE else "White"
            return f"Checkmate. {winner} wins."
        if board.is_game_over():
            return "Draw."
        status = f"{turn} to move."
        if board.is_check():
            status += " (Check)"
        return status

    # ── Internal helpers ─────────────────────────────────────────────────

    def _resolve_move(self, uci: str) -> chess.Move | None:
        try:
            move = chess.Move.from_uci(uci)
        except ValueError:
            _LOGGER.debug("Rejected malformed move %r", uci)
            return None
        if move in self._board.legal_moves:
            return move
        if move.promotion is None:
            promoted = chess.Move(move.from_square, move.to_square, chess.QUEEN)
            if promoted in self._board.legal_moves:
                return promoted
        _LOGGER.debug("Rejected illegal move %s in %s", uci, self._board.fen())
        return None

    def _prompt_current_player(self) -> None:
        """Ask the current player to move."""
        cp = self.current_player
        if cp is None:
            return

        if cp.is_human:
            self._set_phase(GamePhase.AWAITING_MOVE)
        else:
            self._set_phase(GamePhase.THINKING)
            cp.request_move(self._board)

    def _emit_move(self, move: chess.Move, san: str) -> None:
        for cb in self.events.on_move:
            cb(move, san, self._board)

    def _emit_game_over(self, result: str) -> None:
        self._set_phase(GamePhase.GAME_OVER)
        for cb in self.events.on_game_over:
            cb(result)

    def _set_phase(self, phase: GamePhase) -> None:
        self._phase = phase
        for cb in self.events.on_phase_changed:
            cb(phase)
