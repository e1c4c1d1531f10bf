"""Human-like move choice from ranked engine candidates.

The engine's best line is played most of the time. With a probability that
falls as skill rises, the move is instead drawn from the lines whose score
is within a tolerated drop of the best one, weighted toward the best.
The constants are tuned heuristics; keep them as they are unless they are
recalibrated as a whole.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from chesslab.engine.models import CandidateLine, RequestOutcome
from chesslab.engine.strength import normalize_skill

BASE_BLUNDER_PROBABILITY = 0.28
MAX_DROP_AT_MIN_SKILL = 500
MAX_DROP_SKILL_RANGE = 450

_BIAS_PROB_ERROR_GAIN = 1.25  # ×2.25 at bias -1
_BIAS_PROB_PRECISE_GAIN = 0.75  # ×0.25 at bias +1
_BIAS_DROP_ERROR_GAIN = 0.9  # ×1.9 at bias -1
_BIAS_DROP_PRECISE_GAIN = 0.6  # ×0.4 at bias +1

_WINNING_SCORE_CP = 800
_WINNING_FLOOR = 0.4

_PROBABILITY_MAX = 0.9
_DROP_MIN = 30
_DROP_MAX = 900
_DROP_WEIGHT_SCALE = 50


@dataclass(slots=True, frozen=True)
class BlunderModel:
    """Blunder parameters for one decision."""

    probability: float
    max_drop: int


def blunder_model(skill: float, best_score: int, error_bias: float = 0.0) -> BlunderModel:
    """Compute blunder probability and tolerated score drop."""
    t = normalize_skill(skill)
    probability = (1.0 - t) * BASE_BLUNDER_PROBABILITY
    max_drop = MAX_DROP_AT_MIN_SKILL - t * MAX_DROP_SKILL_RANGE

    bias = max(-1.0, min(1.0, error_bias))
    if bias < 0:
        probability *= 1.0 + _BIAS_PROB_ERROR_GAIN * -bias
        max_drop *= 1.0 + _BIAS_DROP_ERROR_GAIN * -bias
    elif bias > 0:
        probability *= 1.0 - _BIAS_PROB_PRECISE_GAIN * bias
        max_drop *= 1.0 - _BIAS_DROP_PRECISE_GAIN * bias

    # Clearly winning positions are converted more cleanly.
    advantage = max(0.0, min(1.0, best_score / _WINNING_SCORE_CP))
    probability *= 1.0 - (1.0 - _WINNING_FLOOR) * advantage

    probability = max(0.0, min(_PROBABILITY_MAX, probability))
    max_drop = max(_DROP_MIN, min(_DROP_MAX, max_drop))
    return BlunderModel(probability=probability, max_drop=round(max_drop))


def _line_value(line: CandidateLine) -> int | None:
    return line.score.value() if line.score is not None else None


class HumanizedMoveSelector:
    """Pick one move from an outcome at a given skill and error bias."""

    __slots__ = ("_rng", "_error_bias")

    def __init__(
        self,
        *,
        error_bias: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._error_bias = error_bias

    @property
    def error_bias(self) -> float:
        return self._error_bias

    def set_error_bias(self, error_bias: float) -> None:
        self._error_bias = max(-1.0, min(1.0, error_bias))

    def choose(self, outcome: RequestOutcome, skill: float) -> str | None:
        return self.choose_from(outcome.lines, skill)

    def choose_from(self, candidates: Sequence[CandidateLine], skill: float) -> str | None:
        if not candidates:
            return None
        lines = sorted(candidates, key=lambda line: line.rank)
        best = lines[0]
        best_score = _line_value(best)
        model = blunder_model(skill, best_score or 0, self._error_bias)

        if self._rng.random() >= model.probability:
            return best.move
        if best_score is None:
            return best.move

        pool: list[tuple[CandidateLine, int]] = []
        for line in lines:
            value = _line_value(line)
            if value is None:
                continue
            drop = best_score - value
            if drop <= model.max_drop:
                pool.append((line, max(0, drop)))
        if not pool:
            return best.move

        weights = [1.0 / (1.0 + drop / _DROP_WEIGHT_SCALE) for _line, drop in pool]
        picked, _drop = self._rng.choices(pool, weights=weights, k=1)[0]
        return picked.move
