"""Tests for engine score and outcome models."""

from __future__ import annotations

import pytest

from chesslab.engine.models import MATE_SCORE, PendingOutcome, RequestOutcome, Score


class TestScore:
    def test_exactly_one_component_required(self) -> None:
        with pytest.raises(ValueError):
            Score()
        with pytest.raises(ValueError):
            Score(cp=10, mate=2)

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (Score(cp=-35), -35),
            (Score(mate=1), MATE_SCORE - 1),
            (Score(mate=4), MATE_SCORE - 4),
            (Score(mate=0), -MATE_SCORE),
            (Score(mate=-3), -MATE_SCORE + 3),
        ],
    )
    def test_value_saturates_mates(self, score: Score, expected: int) -> None:
        assert score.value() == expected

    def test_negated(self) -> None:
        assert Score(cp=40).negated() == Score(cp=-40)
        assert Score(mate=3).negated() == Score(mate=-3)

    def test_str(self) -> None:
        assert str(Score(cp=125)) == "+1.25"
        assert str(Score(cp=-5)) == "-0.05"
        assert str(Score(mate=-2)) == "#-2"


class TestPendingOutcome:
    def test_resolves_once_and_runs_late_callbacks(self) -> None:
        pending = PendingOutcome(None)
        seen: list[RequestOutcome] = []
        pending.add_done_callback(seen.append)

        first = RequestOutcome(request=None)
        assert pending.resolve(first)
        assert not pending.resolve(RequestOutcome(request=None, complete=True))

        pending.add_done_callback(seen.append)
        assert seen == [first, first]
        assert pending.result() is first
