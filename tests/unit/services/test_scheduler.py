import pytest

from activepaper.models.review import MIN_EASE_FACTOR
from activepaper.services.database import DAY_MS
from activepaper.services.scheduler import (
    INITIAL_EASE_FACTOR,
    calculate_next_review,
    clamp_quality,
    next_ease_factor,
    next_review_at,
    round_half_up,
)


def test_perfect_recall_raises_ease() -> None:
    assert next_ease_factor(2.5, 5) == pytest.approx(2.6)


def test_quality_four_keeps_ease() -> None:
    assert next_ease_factor(2.5, 4) == pytest.approx(2.5)


def test_quality_three_lowers_ease() -> None:
    assert next_ease_factor(2.5, 3) == pytest.approx(2.36)


def test_ease_never_drops_below_floor() -> None:
    ease = INITIAL_EASE_FACTOR
    for _ in range(20):
        ease = next_ease_factor(ease, 0)
    assert ease == MIN_EASE_FACTOR


@pytest.mark.parametrize(("quality", "expected"), [(-3, 0), (0, 0), (3.5, 3.5), (5, 5), (9, 5)])
def test_clamp_quality(quality: float, expected: float) -> None:
    assert clamp_quality(quality) == expected


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2


def test_first_two_successes_use_fixed_intervals() -> None:
    first = calculate_next_review(5, interval_days=1, ease_factor=2.5, review_count=0)
    second = calculate_next_review(5, first.interval_days, first.ease_factor, first.review_count)

    assert (first.interval_days, first.review_count) == (1, 1)
    assert (second.interval_days, second.review_count) == (6, 2)


def test_third_success_multiplies_by_new_ease() -> None:
    schedule = calculate_next_review(5, interval_days=6, ease_factor=2.5, review_count=2)

    # 6 * 2.6 = 15.6
    assert schedule.interval_days == 16
    assert schedule.ease_factor == pytest.approx(2.6)
    assert schedule.review_count == 3


def test_lapse_resets_interval_and_count() -> None:
    schedule = calculate_next_review(1, interval_days=6, ease_factor=2.5, review_count=2)

    assert schedule.interval_days == 1
    assert schedule.review_count == 0
    assert schedule.ease_factor == pytest.approx(1.96)


def test_out_of_range_quality_is_clamped() -> None:
    high = calculate_next_review(11, interval_days=6, ease_factor=2.5, review_count=2)
    perfect = calculate_next_review(5, interval_days=6, ease_factor=2.5, review_count=2)

    assert high == perfect


def test_next_review_at_adds_whole_days() -> None:
    assert next_review_at(1_000, 3) == 1_000 + 3 * DAY_MS
