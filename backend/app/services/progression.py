"""XP and level arithmetic for character stats.

Cumulative XP thresholds follow a triangular curve: level 1 starts at 0 XP and
level ``n >= 2`` is reached at ``n * (n + 1) / 2 * 100`` XP (300, 600, 1000, ...).

Every function validates its inputs the same way and raises ``ProgressionError``
on negative XP, levels below 1 or negative deltas. XP loss is not modelled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import List

XP_CURVE_BASE = 100
# Largest XP a single award may grant.
MAX_XP_AWARD = 100_000

BASE_XP_BY_DIFFICULTY = {
    "easy": 10,
    "medium": 25,
    "hard": 50,
    "extreme": 100,
}

QUALITY_MULTIPLIERS = {
    "poor": 0.5,
    "good": 1.0,
    "excellent": 1.5,
}


class ProgressionError(ValueError):
    """Raised when the engine is called with out-of-range inputs."""


@dataclass(frozen=True)
class StatProgress:
    total_xp: int = 0
    current_xp: int = 0
    current_level: int = 1
    level_title: str | None = None


@dataclass(frozen=True)
class XpProgress:
    current_level_xp: int
    xp_in_current_level: int
    progress_percent: int


@dataclass(frozen=True)
class LevelStep:
    level: int
    xp_required: int


@dataclass(frozen=True)
class LevelUpRewards:
    new_level: int
    levels_gained: int
    level_progression: List[LevelStep]


@dataclass(frozen=True)
class LevelRequirement:
    level: int
    total_xp: int
    xp_to_reach: int


@dataclass(frozen=True)
class XpAwardOutcome:
    total_xp: int
    current_xp: int
    current_level: int
    leveled_up: bool
    levels_gained: int
    level_progression: List[LevelStep] = field(default_factory=list)


def total_xp_required_for_level(level: int) -> int:
    """Return the cumulative XP at which ``level`` is reached."""
    _check_level(level)
    if level == 1:
        return 0
    return level * (level + 1) // 2 * XP_CURVE_BASE


def calculate_level_from_total_xp(total_xp: int) -> int:
    """Return the highest level whose threshold is covered by ``total_xp``."""
    _check_xp(total_xp)
    # T(n) = 50 * n * (n + 1) <= total_xp  <=>  n * (n + 1) <= total_xp // 50
    units = total_xp // (XP_CURVE_BASE // 2)
    level = (math.isqrt(4 * units + 1) - 1) // 2
    return max(1, level)


def is_ready_to_level_up(total_xp: int, current_level: int) -> bool:
    _check_level(current_level)
    return calculate_level_from_total_xp(total_xp) > current_level


def calculate_xp_progress(total_xp: int, current_level: int) -> XpProgress:
    """Progress through ``current_level``; the level must not be stale."""
    _check_xp(total_xp)
    current_level_xp = total_xp_required_for_level(current_level)
    next_level_xp = total_xp_required_for_level(current_level + 1)
    xp_in_current_level = total_xp - current_level_xp
    span = next_level_xp - current_level_xp
    percent = int(xp_in_current_level / span * 100 + 0.5) if xp_in_current_level > 0 else 0
    return XpProgress(
        current_level_xp=current_level_xp,
        xp_in_current_level=xp_in_current_level,
        progress_percent=min(100, max(0, percent)),
    )


def calculate_xp_to_next_level(total_xp: int, current_level: int) -> int:
    _check_xp(total_xp)
    return max(0, total_xp_required_for_level(current_level + 1) - total_xp)


def calculate_level_up_rewards(total_xp: int, current_level: int) -> LevelUpRewards:
    """Describe the level-up from ``current_level`` to the level ``total_xp`` supports.

    Only valid when ``is_ready_to_level_up`` is true; otherwise raises.
    """
    if not is_ready_to_level_up(total_xp, current_level):
        raise ProgressionError(
            f"Not ready to level up: level {current_level} with {total_xp} total XP"
        )
    new_level = calculate_level_from_total_xp(total_xp)
    progression = [
        LevelStep(level=level, xp_required=total_xp_required_for_level(level))
        for level in range(current_level + 1, new_level + 1)
    ]
    return LevelUpRewards(
        new_level=new_level,
        levels_gained=new_level - current_level,
        level_progression=progression,
    )


def apply_xp_award(progress: StatProgress, delta: int) -> XpAwardOutcome:
    """Add ``delta`` XP to a stat snapshot and return the resulting snapshot.

    Persisting the outcome is the caller's job. A stat whose stored level lags
    its XP is caught up as part of the award, so a zero award on a stale
    snapshot catches up the level and reports ``leveled_up``. On a consistent
    snapshot a zero award changes nothing.
    """
    _check_snapshot(progress)
    _check_xp(delta, name="XP delta")
    if delta > MAX_XP_AWARD:
        raise ProgressionError(f"XP delta cannot exceed {MAX_XP_AWARD}")

    new_total_xp = progress.total_xp + delta
    new_level = calculate_level_from_total_xp(new_total_xp)
    if new_level > progress.current_level:
        rewards = calculate_level_up_rewards(new_total_xp, progress.current_level)
        return XpAwardOutcome(
            total_xp=new_total_xp,
            current_xp=new_total_xp - total_xp_required_for_level(new_level),
            current_level=new_level,
            leveled_up=True,
            levels_gained=rewards.levels_gained,
            level_progression=rewards.level_progression,
        )
    return XpAwardOutcome(
        total_xp=new_total_xp,
        current_xp=progress.current_xp + delta,
        current_level=progress.current_level,
        leveled_up=False,
        levels_gained=0,
    )


def apply_level_up(progress: StatProgress) -> XpAwardOutcome:
    """Catch a stale snapshot up to the level its XP supports."""
    if not is_ready_to_level_up(progress.total_xp, progress.current_level):
        raise ProgressionError(
            f"Not ready to level up: level {progress.current_level} "
            f"with {progress.total_xp} total XP"
        )
    return apply_xp_award(progress, 0)


def validate_stat_progress(progress: StatProgress) -> None:
    """Raise ``ProgressionError`` if a stored snapshot is internally inconsistent.

    A level lagging behind the XP is allowed (that is a pending level-up); a
    level ahead of the XP or XP counters that disagree are not.
    """
    _check_snapshot(progress)
    supported = calculate_level_from_total_xp(progress.total_xp)
    if progress.current_level > supported:
        raise ProgressionError(
            f"Level {progress.current_level} is above the level {supported} "
            f"supported by {progress.total_xp} total XP"
        )
    if progress.current_level == supported:
        expected = progress.total_xp - total_xp_required_for_level(progress.current_level)
        if progress.current_xp != expected:
            raise ProgressionError(
                f"Current XP {progress.current_xp} does not match the {expected} XP "
                f"earned since reaching level {progress.current_level}"
            )


def get_level_xp_requirements(max_level: int = 20) -> List[LevelRequirement]:
    _check_level(max_level, name="max_level")
    requirements: List[LevelRequirement] = []
    previous = 0
    for level in range(1, max_level + 1):
        total = total_xp_required_for_level(level)
        requirements.append(LevelRequirement(level=level, total_xp=total, xp_to_reach=total - previous))
        previous = total
    return requirements


def calculate_stat_xp_award(
    difficulty: str,
    quality: str = "good",
    bonus_multiplier: float = 1.0,
) -> int:
    """XP for finishing a task of ``difficulty`` at the given completion quality."""
    if difficulty not in BASE_XP_BY_DIFFICULTY:
        raise ProgressionError(f"Unknown difficulty: {difficulty}")
    if quality not in QUALITY_MULTIPLIERS:
        raise ProgressionError(f"Unknown completion quality: {quality}")
    if bonus_multiplier < 0:
        raise ProgressionError("Bonus multiplier cannot be negative")
    xp = BASE_XP_BY_DIFFICULTY[difficulty] * QUALITY_MULTIPLIERS[quality] * bonus_multiplier
    return int(xp + 0.5)


def _check_level(level: int, *, name: str = "Level") -> None:
    if isinstance(level, bool) or not isinstance(level, int):
        raise ProgressionError(f"{name} must be an integer")
    if level < 1:
        raise ProgressionError(f"{name} must be at least 1")


def _check_xp(value: int, *, name: str = "Total XP") -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProgressionError(f"{name} must be an integer")
    if value < 0:
        raise ProgressionError(f"{name} cannot be negative")


def _check_snapshot(progress: StatProgress) -> None:
    _check_xp(progress.total_xp)
    _check_xp(progress.current_xp, name="Current XP")
    _check_level(progress.current_level)
