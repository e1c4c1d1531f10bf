"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator

import pytest

# Linux CI runners are often headless. Force an offscreen backend only there.
if (
    sys.platform.startswith("linux")
    and "QT_QPA_PLATFORM" not in os.environ
    and "DISPLAY" not in os.environ
    and "WAYLAND_DISPLAY" not in os.environ
):
    os.environ["QT_QPA_PLATFORM"] = "offscreen"


@pytest.fixture(scope="session")
def qapp() -> Iterator[object]:
    """Provide a singleton QCoreApplication for Qt-backed tests."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def transport(qapp: object) -> object:
    """In-memory engine transport with the same signals as ``UciProcess``."""
    del qapp
    from PyQt6.QtCore import QObject, pyqtSignal

    class FakeTransport(QObject):
        line_received = pyqtSignal(str)
        start_failed = pyqtSignal(str)
        process_error = pyqtSignal(str)

        def __init__(self) -> None:
            super().__init__()
            self.sent: list[str] = []
            self.running = False
            self.fail_on_start: str | None = None

        def start(self) -> None:
            if self.fail_on_start is not None:
                self.start_failed.emit(self.fail_on_start)
                return
            self.running = True

        def write_line(self, line: str) -> None:
            if self.running:
                self.sent.append(line)

        def is_running(self) -> bool:
            return self.running

        def stop(self, timeout_ms: int = 2000) -> None:
            del timeout_ms
            self.running = False

        def feed(self, *lines: str) -> None:
            for line in lines:
                self.line_received.emit(line)

        def take(self) -> list[str]:
            sent, self.sent = self.sent, []
            return sent

    return FakeTransport()


@pytest.fixture
def session(transport: object) -> Iterator[object]:
    """Engine session that completed its initial handshake."""
    from chesslab.engine.session import EngineSession

    engine_session = EngineSession(transport)  # type: ignore[arg-type]
    engine_session.setup()
    transport.feed("uciok", "readyok")  # type: ignore[attr-defined]
    transport.take()  # type: ignore[attr-defined]
    yield engine_session
    engine_session.shutdown()
