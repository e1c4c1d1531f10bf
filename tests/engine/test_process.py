"""Tests for the QProcess engine transport."""

from __future__ import annotations

import sys

from PyQt6.QtTest import QSignalSpy

from chesslab.engine.process import UciProcess

_ECHO_ENGINE = (
    "import sys\n"
    "for line in sys.stdin:\n"
    "    cmd = line.strip()\n"
    "    if cmd == 'isready':\n"
    "        print('readyok', flush=True)\n"
    "    elif cmd == 'quit':\n"
    "        break\n"
)


def test_missing_executable_reports_start_failure(qapp: object) -> None:
    del qapp
    process = UciProcess("/nonexistent/chess-engine-binary")
    failed = QSignalSpy(process.start_failed)

    process.start()
    if len(failed) == 0:
        assert failed.wait(3000)

    assert len(failed) == 1
    assert not process.is_running()


def test_lines_are_delivered_one_by_one(qapp: object) -> None:
    del qapp
    process = UciProcess(sys.executable, ["-u", "-c", _ECHO_ENGINE])
    lines = QSignalSpy(process.line_received)

    process.start()
    process.write_line("isready")
    process.write_line("isready")
    for _ in range(2):
        if len(lines) < 2:
            lines.wait(5000)

    assert [lines[i][0] for i in range(len(lines))] == ["readyok", "readyok"]
    process.write_line("quit")
    process.stop()
    assert not process.is_running()
