"""SM-2 spaced-repetition scheduling.

Quality ratings run from 0 to 5:

    0  complete blackout
    1  incorrect, but the answer felt familiar once shown
    2  incorrect, but the answer seemed easy once shown
    3  correct with significant effort
    4  correct after some hesitation
    5  perfect recall

Ratings below 3 are lapses: the card goes back to a one-day interval and its
review streak restarts.
"""

import math

from activepaper.models.review import MIN_EASE_FACTOR, ReviewSchedule
from activepaper.services.database import DAY_MS

INITIAL_EASE_FACTOR = 2.5
INITIAL_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
PASSING_QUALITY = 3
MAX_QUALITY = 5


def clamp_quality(quality: float) -> float:
    return max(0, min(MAX_QUALITY, quality))


def next_ease_factor(ease_factor: float, quality: float) -> float:
    miss = MAX_QUALITY - clamp_quality(quality)
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_next_review(
    quality: float,
    interval_days: int,
    ease_factor: float,
    review_count: int,
) -> ReviewSchedule:
    """Compute the scheduling state after one review.

    Args:
        quality: Recall rating; clamped to 0..5 before use.
        interval_days: Current interval of the card.
        ease_factor: Current ease factor of the card.
        review_count: Consecutive successful reviews so far.

    Returns:
        ReviewSchedule with the new interval, ease factor and review count.
    """
    quality = clamp_quality(quality)
    new_ease = next_ease_factor(ease_factor, quality)

    if quality < PASSING_QUALITY:
        return ReviewSchedule(interval_days=INITIAL_INTERVAL_DAYS, ease_factor=new_ease, review_count=0)

    if review_count == 0:
        new_interval = INITIAL_INTERVAL_DAYS
    elif review_count == 1:
        new_interval = SECOND_INTERVAL_DAYS
    else:
        new_interval = max(INITIAL_INTERVAL_DAYS, round_half_up(interval_days * new_ease))

    return ReviewSchedule(interval_days=new_interval, ease_factor=new_ease, review_count=review_count + 1)


def next_review_at(now: int, interval_days: int) -> int:
    """Due time ``interval_days`` whole days after ``now`` (milliseconds)."""
    return now + interval_days * DAY_MS
