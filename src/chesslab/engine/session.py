"""Engine session: handshake, option configuration and single-flight search."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Protocol

from chesslab.engine.collector import MultiPVCollector
from chesslab.engine.models import (
    EngineRequest,
    HandshakeState,
    PendingOutcome,
    RequestOutcome,
)
from chesslab.engine.protocol import (
    BestMoveEvent,
    InfoEvent,
    ReadyEvent,
    cmd_go,
    cmd_isready,
    cmd_position,
    cmd_quit,
    cmd_setoption,
    cmd_stop,
    cmd_uci,
    cmd_ucinewgame,
    parse_line,
)
from chesslab.engine.strength import EngineStrength, strength_for_skill

_LOGGER = logging.getLogger(__name__)


class EngineSignal(Protocol):
    """Minimal signal interface consumed by :class:`EngineSession`."""

    def connect(self, slot: Callable[..., object]) -> object: ...


class EngineTransport(Protocol):
    """Line transport to an engine process (see ``UciProcess``)."""

    line_received: EngineSignal
    start_failed: EngineSignal
    process_error: EngineSignal

    def start(self) -> None: ...

    def write_line(self, line: str) -> None: ...

    def is_running(self) -> bool: ...

    def stop(self, timeout_ms: int = 2000) -> None: ...


@dataclass
class SessionEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_idle: list[Callable[[], None]] = field(default_factory=list)
    on_ready: list[Callable[[], None]] = field(default_factory=list)
    on_unavailable: list[Callable[[str], None]] = field(default_factory=list)


class EngineSession:
    """Owns the engine transport and at most one in-flight request.

    A request made while another one is in flight resolves at once with an
    empty outcome. A request made before the engine acknowledged its last
    option change is held and sent on the next ``readyok``.
    """

    __slots__ = (
        "__weakref__",
        "_transport",
        "_collector",
        "_handshake",
        "_pending_ready_checks",
        "_request",
        "_pending",
        "_is_dispatched",
        "_is_stop_sent",
        "_is_cancelled",
        "_is_draining",
        "_engine_line_count",
        "_strength",
        "_is_started",
        "_is_unavailable",
        "events",
    )

    def __init__(self, transport: EngineTransport) -> None:
        self._transport = transport
        self._collector = MultiPVCollector()
        self._handshake = HandshakeState.NOT_READY
        self._pending_ready_checks = 0
        self._request: EngineRequest | None = None
        self._pending: PendingOutcome | None = None
        self._is_dispatched = False
        self._is_stop_sent = False
        self._is_cancelled = False
        self._is_draining = False
        self._engine_line_count: int | None = None
        self._strength: EngineStrength | None = None
        self._is_started = False
        self._is_unavailable = False
        self.events = SessionEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def handshake_state(self) -> HandshakeState:
        return self._handshake

    @property
    def is_ready(self) -> bool:
        return self._handshake == HandshakeState.READY

    @property
    def is_busy(self) -> bool:
        """True while a request is in flight or a stopped search winds down."""
        return self._request is not None or self._is_draining

    @property
    def is_available(self) -> bool:
        return self._is_started and not self._is_unavailable

    @property
    def strength(self) -> EngineStrength | None:
        return self._strength

    @property
    def current_request(self) -> EngineRequest | None:
        return self._request

    # ── Lifecycle ────────────────────────────────────────────────────────

    def setup(self) -> None:
        """Start the engine process and begin the handshake."""
        if self._is_started or self._is_unavailable:
            return
        self._transport.line_received.connect(self._on_line)
        self._transport.start_failed.connect(self._on_start_failed)
        self._transport.process_error.connect(self._on_process_error)
        self._is_started = True
        self._transport.start()
        if self._is_unavailable:
            return

        self._send(cmd_uci())
        if self._strength is not None:
            self._apply_strength(self._strength)
        self._request_ready()

    def shutdown(self) -> None:
        """Stop any search and close the engine process."""
        if not self._is_started:
            return
        if self._is_dispatched:
            self._send(cmd_stop())
        self._send(cmd_quit())
        self._transport.stop()
        self._finish_request(RequestOutcome(request=self._request), notify_idle=False)
        self._is_draining = False
        self._handshake = HandshakeState.NOT_READY
        self._pending_ready_checks = 0
        self._is_started = False

    def configure(self, skill: float) -> EngineStrength:
        """Translate *skill* into engine options and re-handshake."""
        strength = strength_for_skill(skill)
        self._strength = strength
        if not self.is_available:
            return strength

        if self._is_dispatched and not self._is_stop_sent:
            self._is_stop_sent = True
            self._send(cmd_stop())
        self._apply_strength(strength)
        self._request_ready()
        _LOGGER.info(
            "Applied skill %d (level %d, %d lines)",
            strength.skill,
            strength.skill_level,
            strength.line_count,
        )
        return strength

    def new_game(self) -> None:
        if not self.is_available:
            return
        self._send(cmd_ucinewgame())
        self._handshake = HandshakeState.NOT_READY
        self._request_ready()

    # ── Requests ─────────────────────────────────────────────────────────

    def request_analysis(
        self,
        fen: str,
        time_budget_ms: int,
        line_count: int = 1,
        depth_target: int | None = None,
    ) -> PendingOutcome:
        """Start a search of *fen*; see the class docstring for the policy."""
        request = EngineRequest(
            fen=fen,
            time_budget_ms=time_budget_ms,
            line_count=max(1, line_count),
            depth_target=depth_target,
        )
        if not self.is_available:
            _LOGGER.debug("Engine unavailable, request dropped: %s", fen)
            return PendingOutcome.resolved(RequestOutcome(request=request))
        if self.is_busy:
            _LOGGER.debug("Engine busy, request rejected: %s", fen)
            return PendingOutcome.resolved(RequestOutcome(request=request))

        self._request = request
        self._pending = PendingOutcome(request)
        self._is_dispatched = False
        self._is_stop_sent = False
        self._is_cancelled = False
        self._collector.reset(request)

        if request.line_count != self._engine_line_count:
            self._set_option("MultiPV", request.line_count)
            self._request_ready()

        pending = self._pending
        if self.is_ready:
            self._dispatch()
        return pending

    def cancel(self) -> None:
        """Ask the engine to stop; the session frees up on ``bestmove``."""
        if self._request is None:
            return
        self._is_cancelled = True
        if not self._is_dispatched:
            # Nothing was sent to the engine yet, so no bestmove will come.
            self._finish_request(self._collector.finish(None))
            return
        if not self._is_stop_sent:
            self._is_stop_sent = True
            self._send(cmd_stop())

    # ── Engine events ────────────────────────────────────────────────────

    def _on_line(self, line: str) -> None:
        event = parse_line(line)
        if event is None:
            return
        if isinstance(event, ReadyEvent):
            self._on_ready()
        elif isinstance(event, InfoEvent):
            self._on_info(event)
        elif isinstance(event, BestMoveEvent):
            self._on_bestmove(event)

    def _on_ready(self) -> None:
        self._pending_ready_checks = max(0, self._pending_ready_checks - 1)
        if self._pending_ready_checks > 0:
            return
        self._handshake = HandshakeState.READY
        for cb in self.events.on_ready:
            cb()
        if self._request is not None and not self._is_dispatched:
            self._dispatch()

    def _on_info(self, event: InfoEvent) -> None:
        pending = self._pending
        if not self._is_dispatched or pending is None or pending.done():
            return
        if self._collector.add(event):
            pending.resolve(self._collector.outcome(complete=True))
            if not self._is_stop_sent:
                self._is_stop_sent = True
                self._send(cmd_stop())

    def _on_bestmove(self, event: BestMoveEvent) -> None:
        if self._is_draining:
            _LOGGER.debug("Interrupted search finished: %s", event.move)
            self._is_draining = False
            self._notify_idle()
            return
        if self._request is None or not self._is_dispatched:
            _LOGGER.debug("Ignoring bestmove without a running search")
            return
        self._finish_request(self._collector.finish(event))

    def _on_start_failed(self, message: str) -> None:
        if self._is_unavailable:
            return
        self._is_unavailable = True
        self._is_draining = False
        self._handshake = HandshakeState.NOT_READY
        _LOGGER.error("Engine could not be started: %s", message)
        self._finish_request(RequestOutcome(request=self._request), notify_idle=False)
        for cb in self.events.on_unavailable:
            cb(message)

    def _on_process_error(self, message: str) -> None:
        if self._is_unavailable:
            return
        _LOGGER.warning("Engine process error: %s", message)
        outcome = self._collector.finish(None)
        if self._transport.is_running():
            # The search keeps running; its output must not reach a new request.
            if self._is_dispatched:
                self._is_draining = True
                if not self._is_stop_sent:
                    self._send(cmd_stop())
            self._finish_request(outcome, notify_idle=not self._is_draining)
            return

        self._is_unavailable = True
        self._handshake = HandshakeState.NOT_READY
        was_draining = self._is_draining
        self._is_draining = False
        self._finish_request(outcome)
        if was_draining:
            self._notify_idle()
        for cb in self.events.on_unavailable:
            cb(message)

    # ── Internal helpers ─────────────────────────────────────────────────

    def _dispatch(self) -> None:
        request = self._request
        if request is None:
            return
        self._is_dispatched = True
        self._send(cmd_position(request.fen))
        self._send(cmd_go(request.time_budget_ms, request.depth_target))

    def _finish_request(self, outcome: RequestOutcome, *, notify_idle: bool = True) -> None:
        pending = self._pending
        had_request = self._request is not None
        if self._is_cancelled and not outcome.complete:
            outcome = replace(outcome, cancelled=True)
        self._request = None
        self._pending = None
        self._is_dispatched = False
        self._is_stop_sent = False
        self._is_cancelled = False
        self._collector.reset(None)
        if pending is not None and not pending.done():
            pending.resolve(outcome)
        if had_request and notify_idle:
            self._notify_idle()

    def _notify_idle(self) -> None:
        for cb in self.events.on_idle:
            cb()

    def _apply_strength(self, strength: EngineStrength) -> None:
        for name, value in strength.uci_options():
            self._set_option(name, value)

    def _set_option(self, name: str, value: object) -> None:
        self._send(cmd_setoption(name, value))
        self._handshake = HandshakeState.NOT_READY
        if name == "MultiPV" and isinstance(value, int):
            self._engine_line_count = value

    def _request_ready(self) -> None:
        self._pending_ready_checks += 1
        self._send(cmd_isready())

    def _send(self, line: str) -> None:
        self._transport.write_line(line)
