"""Live-play engine opponent: search, humanize, apply if still current."""

from __future__ import annotations

import logging
from collections.abc import Callable

import chess

from chesslab.engine.models import RequestOutcome
from chesslab.engine.session import EngineSession
from chesslab.engine.strength import depth_target, think_time_ms
from chesslab.game.controller import GameController
from chesslab.game.interfaces import GamePhase, IPlayer
from chesslab.play.guard import PositionFingerprint, StaleResultGuard
from chesslab.play.humanizer import HumanizedMoveSelector

_LOGGER = logging.getLogger(__name__)


class EngineOpponent(IPlayer):
    """The engine side of a :class:`GameController` game.

    A move request that finds the session busy (a stopped search still
    winding down) is repeated once the session reports idle. A result is
    applied only if it answers the latest request, the game still waits for
    the engine, the position is unchanged and the search was not cancelled.
    """

    __slots__ = (
        "__weakref__",
        "_session",
        "_controller",
        "_selector",
        "_guard",
        "_skill",
        "_set_status",
        "_request_serial",
        "_is_waiting_for_idle",
    )

    def __init__(
        self,
        color: chess.Color,
        *,
        session: EngineSession,
        controller: GameController,
        skill: float,
        selector: HumanizedMoveSelector | None = None,
        set_status: Callable[[str], None] | None = None,
        name: str = "Engine",
    ) -> None:
        super().__init__(color, name)
        self._session = session
        self._controller = controller
        self._selector = selector or HumanizedMoveSelector()
        self._guard = StaleResultGuard(controller)
        self._skill = skill
        self._set_status = set_status or (lambda _text: None)
        self._request_serial = 0
        self._is_waiting_for_idle = False
        session.events.on_idle.append(self._on_session_idle)

    @property
    def is_human(self) -> bool:
        return False

    @property
    def skill(self) -> float:
        return self._skill

    @property
    def selector(self) -> HumanizedMoveSelector:
        return self._selector

    def set_skill(self, skill: float) -> None:
        """Change playing strength; the engine re-handshakes before searching."""
        self._skill = skill
        self._session.configure(skill)

    def request_move(self, board: chess.Board) -> None:
        """Start a search for the live position."""
        if self._session.is_busy:
            self._is_waiting_for_idle = True
            return
        self._is_waiting_for_idle = False
        strength = self._session.strength
        line_count = strength.line_count if strength is not None else 1
        fingerprint = self._guard.capture()
        self._request_serial += 1
        serial = self._request_serial

        pending = self._session.request_analysis(
            board.fen(),
            think_time_ms(self._skill),
            line_count,
            depth_target(self._skill),
        )
        pending.add_done_callback(
            lambda outcome: self._on_outcome(serial, fingerprint, outcome)
        )

    def cancel(self) -> None:
        self._is_waiting_for_idle = False
        self._guard.clear()
        self._session.cancel()

    def _is_my_turn(self) -> bool:
        return (
            self._controller.phase == GamePhase.THINKING
            and self._controller.current_player is self
        )

    def _on_session_idle(self) -> None:
        if not self._is_waiting_for_idle:
            return
        self._is_waiting_for_idle = False
        if self._is_my_turn():
            self.request_move(self._controller.board)

    def _on_outcome(
        self,
        serial: int,
        fingerprint: PositionFingerprint,
        outcome: RequestOutcome,
    ) -> None:
        if serial != self._request_serial or not self._is_my_turn():
            return
        if outcome.cancelled:
            _LOGGER.debug("Discarding cancelled search for %s", self._controller.fen)
            return
        if not self._guard.is_current(fingerprint):
            return
        if outcome.is_empty:
            _LOGGER.info("Engine produced no move for %s", self._controller.fen)
            self._set_status("Engine did not answer; try again.")
            return

        move = self._selector.choose(outcome, self._skill)
        if move is None or not self._controller.submit_move(move):
            _LOGGER.warning("Engine move %s was not accepted", move)
            return
        self._set_status(self._controller.status_text())
