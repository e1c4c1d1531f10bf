"""Tests for the sequential review pipeline over a shared engine session."""

from __future__ import annotations

from typing import Any

import chess
import pytest

from chesslab.engine.models import MATE_SCORE, Score
from chesslab.review.models import MistakeSeverity, ReviewPhase, ReviewReport
from chesslab.review.pipeline import ReviewPipeline
from chesslab.review.service import ReviewError

_FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]


class _Recorder:
    def __init__(self) -> None:
        self.progress: list[tuple[int, int]] = []
        self.finished: list[ReviewReport] = []
        self.cancelled: list[ReviewReport] = []


@pytest.fixture
def recorder() -> _Recorder:
    return _Recorder()


@pytest.fixture
def pipeline(session: Any, recorder: _Recorder) -> ReviewPipeline:
    return ReviewPipeline(
        session,
        depth=4,
        time_budget_ms=200,
        on_progress=lambda done, total: recorder.progress.append((done, total)),
        on_finished=recorder.finished.append,
        on_cancelled=recorder.cancelled.append,
    )


def _start(
    pipeline: ReviewPipeline,
    session: Any,
    transport: Any,
    moves: list[str],
    fen: str = chess.STARTING_FEN,
) -> None:
    pipeline.start(fen, moves)
    if session.is_busy and not session.is_ready:
        transport.feed("readyok")  # MultiPV switched to a single line


def _answer(transport: Any, score: str, move: str = "a2a3") -> None:
    transport.feed(f"info depth 4 multipv 1 score {score} pv {move}", f"bestmove {move}")


def _go_count(sent: list[str]) -> int:
    return sum(1 for line in sent if line.startswith("go "))


def test_every_ply_is_evaluated_in_order(
    pipeline: ReviewPipeline, session: Any, transport: Any, recorder: _Recorder
) -> None:
    _start(pipeline, session, transport, ["e2e4", "e7e5"])
    assert transport.take()[-2:] == [
        f"position fen {chess.STARTING_FEN}",
        "go movetime 200 depth 4",
    ]

    _answer(transport, "cp 30")
    _answer(transport, "cp -20")  # black to move
    _answer(transport, "cp 25")

    assert recorder.progress == [(1, 3), (2, 3), (3, 3)]
    (report,) = recorder.finished
    assert report.phase == ReviewPhase.COMPLETE
    assert report.eval_curve() == [30, 20, 25]
    assert report.analyzed == 3
    assert report.total_plies == 2
    assert pipeline.report is report
    assert not session.is_busy


def test_request_is_issued_only_after_session_is_idle(
    pipeline: ReviewPipeline, session: Any, transport: Any
) -> None:
    _start(pipeline, session, transport, ["e2e4"])
    transport.take()

    transport.feed("info depth 4 multipv 1 score cp 30 pv e2e4")
    assert transport.take() == ["stop"]
    assert session.is_busy

    transport.feed("bestmove e2e4")
    sent = transport.take()
    assert _go_count(sent) == 1
    assert sent[0] == f"position fen {pipeline.plies[1].fen}"


def test_terminal_position_scored_locally(
    pipeline: ReviewPipeline, session: Any, transport: Any, recorder: _Recorder
) -> None:
    _start(pipeline, session, transport, _FOOLS_MATE)

    _answer(transport, "cp 20")
    _answer(transport, "cp 10")
    _answer(transport, "cp 0")
    _answer(transport, "mate 1", "d8h4")

    assert _go_count(transport.sent) == 4
    (report,) = recorder.finished
    final = report.evals[-1]
    assert final is not None
    assert final.raw == Score(mate=0)
    assert final.absolute == -MATE_SCORE

    (blunder,) = report.mistakes
    assert (blunder.ply, blunder.san, blunder.mover) == (3, "g4", chess.WHITE)
    assert blunder.severity == MistakeSeverity.SEVERE
    assert blunder.swing == 1500
    assert report.white.severe == 1
    assert report.black.moves == 2


def test_cancel_mid_run_keeps_analyzed_prefix(
    pipeline: ReviewPipeline, session: Any, transport: Any, recorder: _Recorder
) -> None:
    _start(pipeline, session, transport, ["e2e4", "e7e5", "g1f3"])
    _answer(transport, "cp 30")
    transport.take()

    pipeline.cancel()

    assert transport.take() == ["stop"]
    assert pipeline.phase == ReviewPhase.CANCELLED
    (report,) = recorder.cancelled
    assert report.analyzed == 1
    assert recorder.finished == []

    transport.feed("info depth 4 multipv 1 score cp 99 pv e7e5", "bestmove e7e5")
    assert _go_count(transport.take()) == 0
    assert pipeline.evals[1] is None
    assert not session.is_busy


def test_start_waits_for_live_search_to_stop(
    pipeline: ReviewPipeline, session: Any, transport: Any
) -> None:
    live = session.request_analysis(chess.STARTING_FEN, 300, 3, None)
    transport.feed("readyok")
    transport.take()

    pipeline.start(chess.STARTING_FEN, ["e2e4"])
    assert transport.take() == ["stop"]
    assert pipeline.phase == ReviewPhase.RUNNING

    transport.feed("bestmove d2d4")
    assert live.done()
    if not session.is_ready:
        transport.feed("readyok")
    assert _go_count(transport.take()) == 1


def test_restart_discards_previous_review(
    pipeline: ReviewPipeline, session: Any, transport: Any, recorder: _Recorder
) -> None:
    _start(pipeline, session, transport, ["e2e4", "e7e5"])
    transport.take()

    other = "rnbqkbnr/pppppppp/8/8/3P4/8/PPP1PPPP/RNBQKBNR b KQkq - 0 1"
    pipeline.start(other, ["d7d5"])
    assert transport.take() == ["stop"]

    transport.feed("info depth 4 multipv 1 score cp 45 pv e2e4", "bestmove e2e4")
    assert transport.take()[0] == f"position fen {other}"

    _answer(transport, "cp 15")
    _answer(transport, "cp -5")
    (report,) = recorder.finished
    assert report.first_mover == chess.BLACK
    assert report.eval_curve() == [15, 5]


def test_unavailable_engine_completes_without_evaluations(
    pipeline: ReviewPipeline, session: Any, transport: Any, recorder: _Recorder
) -> None:
    transport.running = False
    transport.process_error.emit("Engine exited with code 0")

    pipeline.start(chess.STARTING_FEN, _FOOLS_MATE)

    (report,) = recorder.finished
    assert report.analyzed == 1  # the checkmate is scored locally
    assert report.mistakes == ()
    assert recorder.progress[-1] == (5, 5)


def test_illegal_history_is_rejected(pipeline: ReviewPipeline) -> None:
    with pytest.raises(ReviewError):
        pipeline.start(chess.STARTING_FEN, ["e2e4", "e2e4"])
    assert pipeline.phase == ReviewPhase.IDLE
