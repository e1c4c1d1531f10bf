"""Tests for the humanized move selector."""

from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Any

import pytest

from chesslab.engine.models import CandidateLine, RequestOutcome, Score
from chesslab.engine.strength import SKILL_MAX, SKILL_MIN
from chesslab.play.humanizer import HumanizedMoveSelector, blunder_model

_CANDIDATES = (
    CandidateLine(rank=1, move="e2e4", score=Score(cp=40), depth=12),
    CandidateLine(rank=2, move="d2d4", score=Score(cp=10), depth=12),
)


class _ForcedRng(random.Random):
    """Rng whose first draw is fixed and whose weighted pick is recorded."""

    def __init__(self, first: float, pick_index: int = -1) -> None:
        super().__init__(0)
        self._first = first
        self._pick_index = pick_index
        self.pools: list[list[Any]] = []

    def random(self) -> float:
        return self._first

    def choices(  # type: ignore[override]
        self,
        population: Sequence[Any],
        weights: Sequence[float] | None = None,
        *,
        cum_weights: Sequence[float] | None = None,
        k: int = 1,
    ) -> list[Any]:
        del cum_weights, k
        self.pools.append(list(zip(population, weights or [], strict=False)))
        return [population[self._pick_index]]


class TestBlunderModel:
    def test_max_skill_never_blunders(self) -> None:
        model = blunder_model(SKILL_MAX, 40)
        assert model.probability == 0.0
        assert model.max_drop == 50

    def test_min_skill_base_rate_with_situational_scaling(self) -> None:
        model = blunder_model(SKILL_MIN, 0)
        assert model.probability == pytest.approx(0.28)
        assert model.max_drop == 500

        model = blunder_model(SKILL_MIN, 40)
        assert model.probability == pytest.approx(0.28 * 0.97)

    def test_winning_positions_floor_at_forty_percent(self) -> None:
        assert blunder_model(SKILL_MIN, 800).probability == pytest.approx(0.28 * 0.4)
        assert blunder_model(SKILL_MIN, 5000).probability == pytest.approx(0.28 * 0.4)
        assert blunder_model(SKILL_MIN, -300).probability == pytest.approx(0.28)

    def test_error_bias_extremes(self) -> None:
        error_prone = blunder_model(SKILL_MIN, 0, error_bias=-1.0)
        precise = blunder_model(SKILL_MIN, 0, error_bias=1.0)

        assert error_prone.probability == pytest.approx(0.28 * 2.25)
        assert error_prone.max_drop == 900  # 950 clamped
        assert precise.probability == pytest.approx(0.28 * 0.25)
        assert precise.max_drop == 200

    def test_drop_tolerance_lower_clamp(self) -> None:
        assert blunder_model(SKILL_MAX, 0, error_bias=1.0).max_drop == 30

    def test_bias_outside_range_is_clamped(self) -> None:
        assert blunder_model(SKILL_MIN, 0, error_bias=-7).probability == pytest.approx(
            0.28 * 2.25
        )


class TestSelector:
    def test_empty_outcome_gives_no_move(self) -> None:
        selector = HumanizedMoveSelector(rng=random.Random(1))
        assert selector.choose(RequestOutcome(request=None), SKILL_MIN) is None

    def test_non_blunder_draw_returns_best(self) -> None:
        rng = _ForcedRng(first=0.99)
        selector = HumanizedMoveSelector(rng=rng)
        assert selector.choose_from(_CANDIDATES, SKILL_MAX) == "e2e4"
        assert rng.pools == []

    def test_blunder_draw_pools_moves_within_tolerance(self) -> None:
        rng = _ForcedRng(first=-1.0, pick_index=1)
        selector = HumanizedMoveSelector(rng=rng)

        assert selector.choose_from(_CANDIDATES, SKILL_MAX) == "d2d4"
        (pool,) = rng.pools
        moves = [line.move for (line, _drop), _w in pool]
        weights = [w for _entry, w in pool]
        assert moves == ["e2e4", "d2d4"]
        assert weights == pytest.approx([1.0, 1.0 / (1.0 + 30 / 50)])

    def test_lines_beyond_tolerance_are_excluded(self) -> None:
        candidates = (
            CandidateLine(rank=1, move="d1h5", score=Score(mate=2), depth=20),
            CandidateLine(rank=2, move="g1f3", score=Score(cp=500), depth=20),
            CandidateLine(rank=3, move="a2a3", score=None, depth=20),
        )
        rng = _ForcedRng(first=-1.0, pick_index=0)
        selector = HumanizedMoveSelector(error_bias=-1.0, rng=rng)

        assert selector.choose_from(candidates, SKILL_MIN) == "d1h5"
        (pool,) = rng.pools
        assert [line.move for (line, _drop), _w in pool] == ["d1h5"]

    def test_unscored_best_is_returned_on_blunder(self) -> None:
        candidates = (CandidateLine(rank=1, move="e2e4", score=None, depth=0),)
        rng = _ForcedRng(first=-1.0)
        assert HumanizedMoveSelector(rng=rng).choose_from(candidates, SKILL_MIN) == "e2e4"

    def test_candidates_are_ordered_by_rank(self) -> None:
        rng = _ForcedRng(first=0.99)
        selector = HumanizedMoveSelector(rng=rng)
        assert selector.choose_from(tuple(reversed(_CANDIDATES)), SKILL_MAX) == "e2e4"


class TestStatistics:
    def test_max_skill_always_plays_best(self) -> None:
        selector = HumanizedMoveSelector(rng=random.Random(20240611))
        picks = [selector.choose_from(_CANDIDATES, SKILL_MAX) for _ in range(1000)]
        assert picks.count("d2d4") == 0

    def test_min_skill_second_choice_rate(self) -> None:
        selector = HumanizedMoveSelector(rng=random.Random(7))
        draws = 5000
        picks = [selector.choose_from(_CANDIDATES, SKILL_MIN) for _ in range(draws)]

        probability = blunder_model(SKILL_MIN, 40).probability
        second_share = (1.0 / 1.6) / (1.0 + 1.0 / 1.6)
        expected = probability * second_share
        assert picks.count("d2d4") / draws == pytest.approx(expected, abs=0.03)

    def test_error_prone_bias_blunders_more_than_precise(self) -> None:
        prone = HumanizedMoveSelector(error_bias=-1.0, rng=random.Random(3))
        precise = HumanizedMoveSelector(error_bias=1.0, rng=random.Random(3))
        prone_picks = [prone.choose_from(_CANDIDATES, SKILL_MIN) for _ in range(2000)]
        precise_picks = [precise.choose_from(_CANDIDATES, SKILL_MIN) for _ in range(2000)]
        assert prone_picks.count("d2d4") > 3 * precise_picks.count("d2d4")
