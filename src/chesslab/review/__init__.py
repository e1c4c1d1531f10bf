"""Post-game review APIs."""

from chesslab.review.models import (
    EvalPoint,
    MistakeRecord,
    MistakeSeverity,
    ReviewPhase,
    ReviewPly,
    ReviewReport,
    SideReviewSummary,
)
from chesslab.review.pipeline import ReviewPipeline
from chesslab.review.service import (
    ReviewError,
    build_plies,
    classify_swing,
    compute_mistakes,
    to_absolute,
)

__all__ = [
    "EvalPoint",
    "MistakeRecord",
    "MistakeSeverity",
    "ReviewError",
    "ReviewPhase",
    "ReviewPipeline",
    "ReviewPly",
    "ReviewReport",
    "SideReviewSummary",
    "build_plies",
    "classify_swing",
    "compute_mistakes",
    "to_absolute",
]
