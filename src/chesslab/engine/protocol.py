"""UCI line parsing and command formatting.

The engine talks one line per message. :func:`parse_line` turns the lines
the session cares about into typed events and returns ``None`` for
everything else; it never raises, engine log noise is expected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chesslab.engine.models import Score

_LOGGER = logging.getLogger(__name__)

READY_TOKEN = "readyok"
NO_MOVE_SENTINELS = frozenset({"(none)", "0000"})

# Tokens inside an ``info`` line that carry one integer argument we skip.
_SKIPPED_INT_FIELDS = frozenset(
    {
        "seldepth",
        "time",
        "nodes",
        "nps",
        "hashfull",
        "tbhits",
        "cpuload",
        "currmovenumber",
        "sbhits",
    }
)


@dataclass(slots=True, frozen=True)
class ReadyEvent:
    """Readiness acknowledgment for the last ``isready``."""


@dataclass(slots=True, frozen=True)
class InfoEvent:
    """One principal-variation update for a ranked line."""

    depth: int
    rank: int
    move: str
    score: Score | None


@dataclass(slots=True, frozen=True)
class BestMoveEvent:
    """End of search; ``move`` is ``None`` when the engine has no move."""

    move: str | None


EngineEvent = ReadyEvent | InfoEvent | BestMoveEvent


def parse_line(line: str) -> EngineEvent | None:
    """Parse one engine output line into an event, or ``None``."""
    tokens = line.split()
    if not tokens:
        return None

    head = tokens[0]
    if head == READY_TOKEN:
        return ReadyEvent()
    if head == "bestmove":
        return _parse_bestmove(tokens)
    if head == "info":
        return _parse_info(tokens)

    _LOGGER.debug("Unhandled engine line: %s", line)
    return None


def _parse_bestmove(tokens: list[str]) -> BestMoveEvent:
    if len(tokens) < 2 or tokens[1] in NO_MOVE_SENTINELS:
        return BestMoveEvent(move=None)
    return BestMoveEvent(move=tokens[1])


def _parse_info(tokens: list[str]) -> InfoEvent | None:
    if "pv" not in tokens:
        return None

    depth: int | None = None
    rank = 1
    move: str | None = None
    score: Score | None = None

    i = 1
    n = len(tokens)
    try:
        while i < n:
            key = tokens[i]
            if key == "depth":
                depth = int(tokens[i + 1])
                i += 2
            elif key == "multipv":
                rank = int(tokens[i + 1])
                i += 2
            elif key == "score":
                kind = tokens[i + 1]
                value = int(tokens[i + 2])
                if kind == "cp":
                    score = Score(cp=value)
                elif kind == "mate":
                    score = Score(mate=value)
                i += 3
            elif key == "pv":
                if i + 1 < n:
                    move = tokens[i + 1]
                break
            elif key == "string":
                return None
            elif key in _SKIPPED_INT_FIELDS:
                i += 2
            else:
                # lowerbound / upperbound / currmove and unknown tokens
                i += 1
    except (IndexError, ValueError):
        _LOGGER.debug("Malformed info line: %s", " ".join(tokens))
        return None

    if depth is None or move is None or rank < 1:
        return None
    return InfoEvent(depth=depth, rank=rank, move=move, score=score)


# ── Outbound commands ────────────────────────────────────────────────────────


def cmd_uci() -> str:
    return "uci"


def cmd_isready() -> str:
    return "isready"


def cmd_setoption(name: str, value: object) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"setoption name {name} value {value}"


def cmd_ucinewgame() -> str:
    return "ucinewgame"


def cmd_position(fen: str) -> str:
    return f"position fen {fen}"


def cmd_go(time_budget_ms: int, depth: int | None = None) -> str:
    cmd = f"go movetime {max(1, int(time_budget_ms))}"
    if depth is not None:
        cmd += f" depth {depth}"
    return cmd


def cmd_stop() -> str:
    return "stop"


def cmd_quit() -> str:
    return "quit"
