"""MultiPV aggregation for a single in-flight request."""

from __future__ import annotations

from dataclasses import replace

from chesslab.engine.models import CandidateLine, EngineRequest, RequestOutcome
from chesslab.engine.protocol import BestMoveEvent, InfoEvent


class MultiPVCollector:
    """Collects ranked lines for one request and decides when it is done.

    The buffer belongs to exactly one request; :meth:`reset` discards it.
    """

    __slots__ = ("_request", "_lines", "_max_depth")

    def __init__(self) -> None:
        self._request: EngineRequest | None = None
        self._lines: dict[int, CandidateLine] = {}
        self._max_depth = 0

    @property
    def request(self) -> EngineRequest | None:
        return self._request

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def rank_count(self) -> int:
        return len(self._lines)

    def reset(self, request: EngineRequest | None) -> None:
        self._request = request
        self._lines = {}
        self._max_depth = 0

    def add(self, event: InfoEvent) -> bool:
        """Record *event*; return True once the early-resolution rule holds."""
        request = self._request
        if request is None:
            return False
        if event.rank > request.line_count:
            return self.is_satisfied()

        self._lines[event.rank] = CandidateLine(
            rank=event.rank,
            move=event.move,
            score=event.score,
            depth=event.depth,
        )
        self._max_depth = max(self._max_depth, event.depth)
        return self.is_satisfied()

    def is_satisfied(self) -> bool:
        request = self._request
        if request is None or request.depth_target is None:
            return False
        return (
            self._max_depth >= request.depth_target
            and len(self._lines) >= request.line_count
        )

    def outcome(self, *, complete: bool) -> RequestOutcome:
        """Lines best first, renumbered from rank 1.

        Ranks are refined at different depths, so a lower rank can briefly
        outscore rank 1; lines are ordered by mate-saturated score (unscored
        last) with the engine rank breaking ties.
        """
        lines = sorted(self._lines.values(), key=_strength_order)
        ordered = tuple(
            line if line.rank == rank else replace(line, rank=rank)
            for rank, line in enumerate(lines, start=1)
        )
        return RequestOutcome(request=self._request, lines=ordered, complete=complete)

    def finish(self, event: BestMoveEvent | None) -> RequestOutcome:
        """Build the outcome for a search that ended before the threshold.

        With nothing collected, the engine's best move alone becomes a
        rank-1 line without a score.
        """
        if self._lines:
            return self.outcome(complete=self.is_satisfied())
        if event is not None and event.move is not None:
            line = CandidateLine(rank=1, move=event.move, score=None, depth=0)
            return RequestOutcome(request=self._request, lines=(line,), complete=False)
        return RequestOutcome(request=self._request, lines=(), complete=False)


def _strength_order(line: CandidateLine) -> tuple[int, int, int]:
    if line.score is None:
        return (1, 0, line.rank)
    return (0, -line.score.value(), line.rank)
