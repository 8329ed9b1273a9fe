"""Unit tests for the XP curve and stat progression arithmetic."""
from __future__ import annotations

import pytest

from app.services.progression import (
    MAX_XP_AWARD,
    LevelStep,
    ProgressionError,
    StatProgress,
    apply_level_up,
    apply_xp_award,
    calculate_level_from_total_xp,
    calculate_level_up_rewards,
    calculate_stat_xp_award,
    calculate_xp_progress,
    calculate_xp_to_next_level,
    get_level_xp_requirements,
    is_ready_to_level_up,
    total_xp_required_for_level,
    validate_stat_progress,
)


@pytest.mark.parametrize(
    ("level", "expected"),
    [(1, 0), (2, 300), (3, 600), (4, 1000), (5, 1500), (10, 5500)],
)
def test_total_xp_required_for_level(level: int, expected: int) -> None:
    assert total_xp_required_for_level(level) == expected


def test_thresholds_strictly_increase() -> None:
    thresholds = [total_xp_required_for_level(level) for level in range(1, 60)]
    assert all(later > earlier for earlier, later in zip(thresholds, thresholds[1:]))


@pytest.mark.parametrize(
    ("total_xp", "expected"),
    [(0, 1), (299, 1), (300, 2), (599, 2), (600, 3), (999, 3), (1000, 4), (5500, 10)],
)
def test_calculate_level_from_total_xp(total_xp: int, expected: int) -> None:
    assert calculate_level_from_total_xp(total_xp) == expected


def test_level_is_bracketed_by_its_thresholds() -> None:
    for total_xp in range(0, 8000, 37):
        level = calculate_level_from_total_xp(total_xp)
        assert total_xp_required_for_level(level) <= total_xp < total_xp_required_for_level(level + 1)


def test_xp_to_next_level_lands_exactly_on_next_threshold() -> None:
    for total_xp in range(0, 4000, 53):
        level = calculate_level_from_total_xp(total_xp)
        remaining = calculate_xp_to_next_level(total_xp, level)
        assert remaining > 0
        assert calculate_level_from_total_xp(total_xp + remaining) == level + 1
        assert calculate_level_from_total_xp(total_xp + remaining - 1) == level


def test_xp_to_next_level_never_negative_for_stale_level() -> None:
    assert calculate_xp_to_next_level(2000, 1) == 0


def test_is_ready_to_level_up() -> None:
    assert is_ready_to_level_up(300, 1) is True
    assert is_ready_to_level_up(299, 1) is False
    assert is_ready_to_level_up(600, 3) is False


def test_calculate_xp_progress_midway() -> None:
    progress = calculate_xp_progress(450, 2)

    assert progress.current_level_xp == 300
    assert progress.xp_in_current_level == 150
    assert progress.progress_percent == 50


@pytest.mark.parametrize(("total_xp", "percent"), [(300, 0), (301, 0), (400, 33), (500, 67), (599, 100)])
def test_progress_percent_rounds_to_nearest(total_xp: int, percent: int) -> None:
    assert calculate_xp_progress(total_xp, 2).progress_percent == percent


def test_calculate_level_up_rewards_lists_each_level() -> None:
    rewards = calculate_level_up_rewards(1000, 1)

    assert rewards.new_level == 4
    assert rewards.levels_gained == 3
    assert rewards.level_progression == [
        LevelStep(level=2, xp_required=300),
        LevelStep(level=3, xp_required=600),
        LevelStep(level=4, xp_required=1000),
    ]


def test_calculate_level_up_rewards_rejects_stat_that_is_not_ready() -> None:
    with pytest.raises(ProgressionError):
        calculate_level_up_rewards(200, 1)


def test_award_below_threshold_keeps_level() -> None:
    outcome = apply_xp_award(StatProgress(total_xp=100, current_xp=100, current_level=1), 50)

    assert outcome.total_xp == 150
    assert outcome.current_xp == 150
    assert outcome.current_level == 1
    assert outcome.leveled_up is False
    assert outcome.levels_gained == 0
    assert outcome.level_progression == []


def test_award_crossing_one_threshold() -> None:
    outcome = apply_xp_award(StatProgress(total_xp=250, current_xp=250, current_level=1), 100)

    assert outcome.total_xp == 350
    assert outcome.current_level == 2
    assert outcome.current_xp == 50
    assert outcome.leveled_up is True
    assert outcome.levels_gained == 1
    assert [step.level for step in outcome.level_progression] == [2]


def test_readiness_flips_once_award_is_applied() -> None:
    progress = StatProgress(total_xp=250, current_xp=250, current_level=1)
    total_after_award = progress.total_xp + 100
    assert is_ready_to_level_up(total_after_award, progress.current_level) is True

    outcome = apply_xp_award(progress, 100)

    assert is_ready_to_level_up(outcome.total_xp, outcome.current_level) is False


def test_large_award_jumps_several_levels() -> None:
    outcome = apply_xp_award(StatProgress(), 1200)

    assert outcome.current_level == 4
    assert outcome.levels_gained == 3
    assert [step.level for step in outcome.level_progression] == [2, 3, 4]
    assert outcome.current_xp == 200


def test_zero_award_is_a_no_op() -> None:
    progress = StatProgress(total_xp=450, current_xp=150, current_level=2)
    outcome = apply_xp_award(progress, 0)

    assert (outcome.total_xp, outcome.current_xp, outcome.current_level) == (450, 150, 2)
    assert outcome.leveled_up is False


def test_award_outcome_satisfies_stored_invariants() -> None:
    progress = StatProgress()
    for delta in (40, 260, 5, 700, 0, 1800, 13):
        outcome = apply_xp_award(progress, delta)
        assert outcome.current_level == calculate_level_from_total_xp(outcome.total_xp)
        assert outcome.current_xp == outcome.total_xp - total_xp_required_for_level(outcome.current_level)
        progress = StatProgress(
            total_xp=outcome.total_xp,
            current_xp=outcome.current_xp,
            current_level=outcome.current_level,
        )
        validate_stat_progress(progress)


def test_apply_level_up_catches_up_stale_stat() -> None:
    outcome = apply_level_up(StatProgress(total_xp=700, current_xp=700, current_level=1))

    assert outcome.current_level == 3
    assert outcome.current_xp == 100
    assert outcome.levels_gained == 2


def test_apply_level_up_requires_pending_level() -> None:
    with pytest.raises(ProgressionError):
        apply_level_up(StatProgress(total_xp=100, current_xp=100, current_level=1))


@pytest.mark.parametrize(
    "call",
    [
        lambda: total_xp_required_for_level(0),
        lambda: total_xp_required_for_level(True),
        lambda: calculate_level_from_total_xp(-1),
        lambda: calculate_level_from_total_xp(10.5),
        lambda: is_ready_to_level_up(100, 0),
        lambda: calculate_xp_progress(-5, 1),
        lambda: apply_xp_award(StatProgress(), -10),
        lambda: apply_xp_award(StatProgress(total_xp=-1), 10),
        lambda: get_level_xp_requirements(0),
    ],
)
def test_invalid_inputs_raise(call) -> None:
    with pytest.raises(ProgressionError):
        call()


def test_award_above_single_grant_limit_is_rejected() -> None:
    with pytest.raises(ProgressionError):
        apply_xp_award(StatProgress(), MAX_XP_AWARD + 1)

    outcome = apply_xp_award(StatProgress(), MAX_XP_AWARD)
    assert outcome.current_level == calculate_level_from_total_xp(MAX_XP_AWARD)


@pytest.mark.parametrize("total_xp", [10**12, 10**15, 10**18 + 7])
def test_level_lookup_for_huge_totals_is_exact(total_xp: int) -> None:
    level = calculate_level_from_total_xp(total_xp)

    assert total_xp_required_for_level(level) <= total_xp < total_xp_required_for_level(level + 1)


def test_level_lookup_matches_thresholds_exactly() -> None:
    for level in range(2, 300):
        threshold = total_xp_required_for_level(level)
        assert calculate_level_from_total_xp(threshold) == level
        assert calculate_level_from_total_xp(threshold - 1) == level - 1


def test_progression_error_is_a_value_error() -> None:
    assert issubclass(ProgressionError, ValueError)


def test_validate_stat_progress_rejects_level_above_xp() -> None:
    with pytest.raises(ProgressionError):
        validate_stat_progress(StatProgress(total_xp=100, current_xp=100, current_level=3))


def test_validate_stat_progress_rejects_mismatched_current_xp() -> None:
    with pytest.raises(ProgressionError):
        validate_stat_progress(StatProgress(total_xp=400, current_xp=50, current_level=2))


def test_validate_stat_progress_allows_pending_level_up() -> None:
    validate_stat_progress(StatProgress(total_xp=700, current_xp=700, current_level=1))


def test_level_xp_requirements_table() -> None:
    table = get_level_xp_requirements(5)

    assert [(req.level, req.total_xp, req.xp_to_reach) for req in table] == [
        (1, 0, 0),
        (2, 300, 300),
        (3, 600, 300),
        (4, 1000, 400),
        (5, 1500, 500),
    ]


@pytest.mark.parametrize(
    ("difficulty", "quality", "bonus", "expected"),
    [
        ("easy", "good", 1.0, 10),
        ("medium", "good", 1.0, 25),
        ("medium", "poor", 1.0, 13),
        ("hard", "excellent", 1.0, 75),
        ("extreme", "excellent", 1.5, 225),
    ],
)
def test_calculate_stat_xp_award(difficulty: str, quality: str, bonus: float, expected: int) -> None:
    assert calculate_stat_xp_award(difficulty, quality, bonus) == expected


def test_calculate_stat_xp_award_rejects_unknown_difficulty() -> None:
    with pytest.raises(ProgressionError):
        calculate_stat_xp_award("legendary")
