"""QProcess transport for a UCI engine executable."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, QProcess, pyqtSignal, pyqtSlot

_LOGGER = logging.getLogger(__name__)


class UciProcess(QObject):
    """Line-oriented wrapper around the engine process.

    Output is delivered through ``line_received`` on the owning thread's
    event loop; nothing here blocks.
    """

    line_received = pyqtSignal(str)
    start_failed = pyqtSignal(str)
    process_error = pyqtSignal(str)

    def __init__(
        self,
        program: str,
        arguments: list[str] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._program = program
        self._arguments = list(arguments or [])
        self._process = QProcess(self)
        self._buffer = b""
        self._process.readyReadStandardOutput.connect(self._on_ready_read)
        self._process.errorOccurred.connect(self._on_error)
        self._process.finished.connect(self._on_finished)
        self._is_stopping = False

    @property
    def program(self) -> str:
        return self._program

    def is_running(self) -> bool:
        return self._process.state() != QProcess.ProcessState.NotRunning

    def start(self) -> None:
        """Launch the engine. Failure is reported through ``start_failed``."""
        self._is_stopping = False
        self._buffer = b""
        _LOGGER.debug("Starting engine: %s %s", self._program, self._arguments)
        self._process.start(self._program, self._arguments)

    def write_line(self, line: str) -> None:
        if not self.is_running():
            _LOGGER.debug("Engine not running, dropped command: %s", line)
            return
        _LOGGER.debug(">> %s", line)
        self._process.write((line + "\n").encode())

    def stop(self, timeout_ms: int = 2000) -> None:
        """Close the process, killing it if it does not exit in time."""
        if not self.is_running():
            return
        self._is_stopping = True
        self._process.closeWriteChannel()
        if not self._process.waitForFinished(timeout_ms):
            self._process.kill()
            self._process.waitForFinished(timeout_ms)

    @pyqtSlot()
    def _on_ready_read(self) -> None:
        self._buffer += bytes(self._process.readAllStandardOutput())
        *complete, self._buffer = self._buffer.split(b"\n")
        for raw in complete:
            line = raw.decode(errors="replace").strip()
            if line:
                self.line_received.emit(line)

    def _on_error(self, error: QProcess.ProcessError) -> None:
        message = self._process.errorString()
        if error == QProcess.ProcessError.FailedToStart:
            self.start_failed.emit(message)
            return
        if self._is_stopping:
            return
        self.process_error.emit(message)

    def _on_finished(self, exit_code: int, exit_status: QProcess.ExitStatus) -> None:
        if self._is_stopping:
            return
        if exit_status == QProcess.ExitStatus.CrashExit:
            # errorOccurred(Crashed) already reported it
            return
        self.process_error.emit(f"Engine exited with code {exit_code}")
