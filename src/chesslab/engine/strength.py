"""Mapping from the human-facing skill value to engine parameters."""

from __future__ import annotations

from dataclasses import dataclass

SKILL_MIN = 400
SKILL_MAX = 2500

_SKILL_LEVEL_MAX = 20
_SLOW_MOVER_MIN = 10
_SLOW_MOVER_MAX = 100
_LINES_AT_MIN_SKILL = 5
_LINES_AT_MAX_SKILL = 2
_DEPTH_AT_MIN_SKILL = 6
_DEPTH_AT_MAX_SKILL = 18
_THINK_TIME_BASE_MS = 80
_THINK_TIME_PER_POINT_MS = 0.12


@dataclass(slots=True, frozen=True)
class EngineStrength:
    """Engine options derived from one skill value."""

    skill: int
    skill_level: int
    slow_mover: int
    line_count: int

    def uci_options(self) -> tuple[tuple[str, object], ...]:
        return (
            ("UCI_LimitStrength", True),
            ("UCI_Elo", self.skill),
            ("Skill Level", self.skill_level),
            ("Slow Mover", self.slow_mover),
            ("MultiPV", self.line_count),
        )


def clamp_skill(skill: float) -> int:
    return int(round(max(SKILL_MIN, min(SKILL_MAX, skill))))


def normalize_skill(skill: float) -> float:
    """Map *skill* onto ``[0, 1]`` over the configured range."""
    return (clamp_skill(skill) - SKILL_MIN) / (SKILL_MAX - SKILL_MIN)


def strength_for_skill(skill: float) -> EngineStrength:
    t = normalize_skill(skill)
    return EngineStrength(
        skill=clamp_skill(skill),
        skill_level=round(t * _SKILL_LEVEL_MAX),
        slow_mover=round(_SLOW_MOVER_MIN + t * (_SLOW_MOVER_MAX - _SLOW_MOVER_MIN)),
        line_count=round(
            _LINES_AT_MIN_SKILL + t * (_LINES_AT_MAX_SKILL - _LINES_AT_MIN_SKILL)
        ),
    )


def think_time_ms(skill: float) -> int:
    """Per-move search time: weak settings answer fast, strong ones think."""
    return round(
        _THINK_TIME_BASE_MS + (clamp_skill(skill) - SKILL_MIN) * _THINK_TIME_PER_POINT_MS
    )


def depth_target(skill: float) -> int:
    t = normalize_skill(skill)
    return round(_DEPTH_AT_MIN_SKILL + t * (_DEPTH_AT_MAX_SKILL - _DEPTH_AT_MIN_SKILL))
