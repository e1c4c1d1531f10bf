"""Review helpers: ply replay, perspective conversion and mistake scoring."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import chess

from chesslab.engine.models import Score
from chesslab.review.models import (
    EvalPoint,
    MistakeRecord,
    MistakeSeverity,
    ReviewPly,
    SideReviewSummary,
)

_SEVERE_MIN_SWING = 600
_MODERATE_MIN_SWING = 350
_MINOR_MIN_SWING = 220

# Cap centipawn values so mate scores don't dominate the swing ordering.
_CP_CAP = 1500


class ReviewError(ValueError):
    """Raised when a move history cannot be replayed."""


def build_plies(start_fen: str, moves: Iterable[chess.Move | str]) -> tuple[ReviewPly, ...]:
    """Replay *moves* from *start_fen* into the ply sequence."""
    board = chess.Board(start_fen)
    plies = [ReviewPly(index=0, fen=board.fen())]
    for index, item in enumerate(moves, start=1):
        try:
            move = item if isinstance(item, chess.Move) else chess.Move.from_uci(item)
        except ValueError as exc:
            msg = f"Invalid move {item!r} at ply {index}"
            raise ReviewError(msg) from exc
        if move not in board.legal_moves:
            msg = f"Illegal move {move.uci()} at ply {index} in {board.fen()}"
            raise ReviewError(msg)

        mover = board.turn
        san = board.san(move)
        board.push(move)
        plies.append(
            ReviewPly(index=index, fen=board.fen(), san=san, uci=move.uci(), mover=mover)
        )
    return tuple(plies)


def to_absolute(score: Score, side_to_move: chess.Color, first_mover: chess.Color) -> int:
    """Flip an engine score so that positive favors *first_mover*."""
    value = score.value()
    return value if side_to_move == first_mover else -value


def terminal_score(board: chess.Board) -> Score | None:
    """Local evaluation for positions the engine cannot search."""
    if board.is_checkmate():
        return Score(mate=0)
    if board.is_stalemate() or board.is_insufficient_material():
        return Score(cp=0)
    return None


def classify_swing(swing: int) -> MistakeSeverity | None:
    if swing >= _SEVERE_MIN_SWING:
        return MistakeSeverity.SEVERE
    if swing >= _MODERATE_MIN_SWING:
        return MistakeSeverity.MODERATE
    if swing >= _MINOR_MIN_SWING:
        return MistakeSeverity.MINOR
    return None


def _clamp_cp(cp: int) -> int:
    return max(-_CP_CAP, min(_CP_CAP, cp))


def compute_mistakes(
    plies: Sequence[ReviewPly],
    evals: Sequence[EvalPoint | None],
    first_mover: chess.Color,
) -> tuple[MistakeRecord, ...]:
    """Classify every ply's swing against its mover, largest first.

    Missing evaluations count as 0.
    """
    curve = [
        _clamp_cp(evals[i].absolute) if i < len(evals) and evals[i] is not None else 0
        for i in range(len(plies))
    ]
    records: list[MistakeRecord] = []
    for ply in plies[1:]:
        if ply.mover is None or ply.san is None:
            continue
        sign = 1 if ply.mover == first_mover else -1
        swing = sign * (curve[ply.index - 1] - curve[ply.index])
        severity = classify_swing(swing)
        if severity is None:
            continue
        records.append(
            MistakeRecord(
                ply=ply.index,
                swing=swing,
                severity=severity,
                mover=ply.mover,
                san=ply.san,
            )
        )
    records.sort(key=lambda record: record.swing, reverse=True)
    return tuple(records)


def build_side_summary(
    plies: Sequence[ReviewPly],
    mistakes: Iterable[MistakeRecord],
    color: chess.Color,
) -> SideReviewSummary:
    moves = sum(1 for ply in plies if ply.mover == color)
    counts = dict.fromkeys(MistakeSeverity, 0)
    for record in mistakes:
        if record.mover == color:
            counts[record.severity] += 1
    return SideReviewSummary(
        moves=moves,
        severe=counts[MistakeSeverity.SEVERE],
        moderate=counts[MistakeSeverity.MODERATE],
        minor=counts[MistakeSeverity.MINOR],
    )

