"""Post-game review: evaluate every ply in order and classify mistakes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from functools import partial

import chess

from chesslab.engine.models import RequestOutcome, Score
from chesslab.engine.session import EngineSession
from chesslab.review.models import EvalPoint, ReviewPhase, ReviewPly, ReviewReport
from chesslab.review.service import (
    build_plies,
    build_side_summary,
    compute_mistakes,
    terminal_score,
    to_absolute,
)

_LOGGER = logging.getLogger(__name__)


class ReviewPipeline:
    """Sequential single-line analysis of a finished game.

    Shares the engine session with live play: only one request is in flight
    at a time, and the next ply is requested once the session is idle.
    """

    __slots__ = (
        "__weakref__",
        "_session",
        "_depth",
        "_time_budget_ms",
        "_on_progress",
        "_on_finished",
        "_on_cancelled",
        "_phase",
        "_generation",
        "_first_mover",
        "_plies",
        "_evals",
        "_next_index",
        "_is_awaiting",
        "_report",
    )

    def __init__(
        self,
        session: EngineSession,
        *,
        depth: int = 14,
        time_budget_ms: int = 1000,
        on_progress: Callable[[int, int], None] | None = None,
        on_finished: Callable[[ReviewReport], None] | None = None,
        on_cancelled: Callable[[ReviewReport], None] | None = None,
    ) -> None:
        self._session = session
        self._depth = depth
        self._time_budget_ms = time_budget_ms
        self._on_progress = on_progress
        self._on_finished = on_finished
        self._on_cancelled = on_cancelled

        self._phase = ReviewPhase.IDLE
        self._generation = 0
        self._first_mover: chess.Color = chess.WHITE
        self._plies: tuple[ReviewPly, ...] = ()
        self._evals: list[EvalPoint | None] = []
        self._next_index = 0
        self._is_awaiting = False
        self._report: ReviewReport | None = None
        session.events.on_idle.append(self._on_session_idle)

    @property
    def phase(self) -> ReviewPhase:
        return self._phase

    @property
    def plies(self) -> tuple[ReviewPly, ...]:
        return self._plies

    @property
    def evals(self) -> tuple[EvalPoint | None, ...]:
        return tuple(self._evals)

    @property
    def report(self) -> ReviewReport | None:
        """Final report of the last finished or cancelled review."""
        return self._report

    def start(self, start_fen: str, moves: Iterable[chess.Move | str]) -> bool:
        """Begin reviewing a game; any previous review is discarded."""
        plies = build_plies(start_fen, moves)
        if self._phase == ReviewPhase.RUNNING:
            self._phase = ReviewPhase.CANCELLED

        self._generation += 1
        self._first_mover = chess.Board(plies[0].fen).turn
        self._plies = plies
        self._evals = [None] * len(plies)
        self._next_index = 0
        self._is_awaiting = False
        self._report = None
        self._phase = ReviewPhase.RUNNING
        _LOGGER.info("Reviewing %d plies", len(plies) - 1)

        # A live-play search may still be running; its result is stale now.
        if self._session.is_busy:
            self._session.cancel()
        self._advance()
        return True

    def cancel(self) -> None:
        """Stop issuing requests and classify whatever was analyzed."""
        if self._phase != ReviewPhase.RUNNING:
            return
        was_awaiting = self._is_awaiting
        self._finish(ReviewPhase.CANCELLED)
        # A held request resolves inside cancel(); the phase already ignores it.
        if was_awaiting:
            self._session.cancel()

    def snapshot(self) -> ReviewReport:
        mistakes = compute_mistakes(self._plies, self._evals, self._first_mover)
        return ReviewReport(
            phase=self._phase,
            first_mover=self._first_mover,
            plies=self._plies,
            evals=tuple(self._evals),
            mistakes=mistakes,
            white=build_side_summary(self._plies, mistakes, chess.WHITE),
            black=build_side_summary(self._plies, mistakes, chess.BLACK),
        )

    # ── Internal helpers ─────────────────────────────────────────────────

    def _advance(self) -> None:
        while (
            self._phase == ReviewPhase.RUNNING
            and not self._is_awaiting
            and self._next_index < len(self._plies)
        ):
            if self._session.is_busy:
                return  # resumed from the session's idle notification

            index = self._next_index
            self._next_index += 1
            board = chess.Board(self._plies[index].fen)

            local = terminal_score(board)
            if local is not None:
                self._store(index, local, board.turn)
                continue

            self._is_awaiting = True
            pending = self._session.request_analysis(
                board.fen(),
                self._time_budget_ms,
                1,
                self._depth,
            )
            pending.add_done_callback(
                partial(self._on_outcome, self._generation, index, board.turn)
            )

    def _on_outcome(
        self,
        generation: int,
        index: int,
        side_to_move: chess.Color,
        outcome: RequestOutcome,
    ) -> None:
        if generation != self._generation or self._phase != ReviewPhase.RUNNING:
            return
        self._is_awaiting = False
        best = outcome.best
        if best is None or best.score is None:
            _LOGGER.debug("No evaluation for ply %d", index)
            self._record_progress(index)
            return
        self._store(index, best.score, side_to_move)

    def _store(self, index: int, raw: Score, side_to_move: chess.Color) -> None:
        absolute = to_absolute(raw, side_to_move, self._first_mover)
        self._evals[index] = EvalPoint(raw=raw, absolute=absolute)
        self._record_progress(index)

    def _record_progress(self, index: int) -> None:
        total = len(self._plies)
        if self._on_progress is not None:
            self._on_progress(index + 1, total)
        if index == total - 1:
            self._finish(ReviewPhase.COMPLETE)

    def _on_session_idle(self) -> None:
        if self._phase == ReviewPhase.RUNNING:
            self._advance()

    def _finish(self, phase: ReviewPhase) -> None:
        self._phase = phase
        self._is_awaiting = False
        report = self.snapshot()
        self._report = report
        _LOGGER.info(
            "Review %s: %d/%d plies analyzed, %d mistakes",
            phase.name.lower(),
            report.analyzed,
            len(self._plies),
            len(report.mistakes),
        )
        if phase == ReviewPhase.COMPLETE:
            if self._on_finished is not None:
                self._on_finished(report)
        elif self._on_cancelled is not None:
            self._on_cancelled(report)
