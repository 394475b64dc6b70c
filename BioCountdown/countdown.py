"""Countdown phrase generation - pure functions for testability."""
import math
import random
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from phrasebook import DEFAULT_PHRASEBOOK, Phrasebook, slavic_plural
from zoned_clock import ONE_DAY, days_floor, diff, hours_ceil


class Tier(Enum):
    """Message family; values double as phrasebook message keys."""
    PAST = "PAST"
    MILESTONE = "MILESTONE"
    HOURS_TODAY = "HOURS_TODAY"
    TODAY = "TODAY"
    FAR_FUTURE = "FAR_FUTURE"
    QUARTER = "QUARTER"
    TWO_MONTHS = "TWO_MONTHS"
    MONTH = "MONTH"
    TWO_WEEKS = "TWO_WEEKS"
    WEEK = "WEEK"
    DAYS_LEFT = "DAYS_LEFT"
    HOURS_LEFT = "HOURS_LEFT"


# Lower bound of each day bucket, checked top-down
DAY_BUCKETS = (
    (120, Tier.FAR_FUTURE),
    (90, Tier.QUARTER),
    (60, Tier.TWO_MONTHS),
    (30, Tier.MONTH),
    (14, Tier.TWO_WEEKS),
    (7, Tier.WEEK),
    (1, Tier.DAYS_LEFT),
)


plural = slavic_plural


def classify(
    target: datetime,
    base: datetime,
    phrasebook: Phrasebook = DEFAULT_PHRASEBOOK
) -> Tuple[Tier, int]:
    """
    Decide which message family applies.

    Args:
        target: The moment being counted down to
        base: Effective "now" (usually the current day boundary)
        phrasebook: Supplies the milestone day table

    Returns:
        Tuple of (tier, count). ``count`` is days for day-based tiers
        (days ago for PAST) and hours for hour-based tiers.
    """
    delta = diff(target, base)
    if delta.total_seconds() < 0:
        # Past days round up while future days round down
        return Tier.PAST, math.ceil(abs(delta) / ONE_DAY)

    days = days_floor(target, base)
    hours = hours_ceil(target, base)

    if days in phrasebook.milestones:
        return Tier.MILESTONE, days

    if days == 0:
        if hours <= 24:
            return Tier.HOURS_TODAY, hours
        return Tier.TODAY, 0

    for lower_bound, tier in DAY_BUCKETS:
        if days >= lower_bound:
            return tier, days

    return Tier.HOURS_LEFT, hours


def generate_message(
    target: datetime,
    base: datetime,
    phrasebook: Phrasebook = DEFAULT_PHRASEBOOK,
    rng: Optional[random.Random] = None
) -> str:
    """
    Build a countdown phrase for ``target`` as seen from ``base``.

    The tier is deterministic; only the variant within the tier is picked
    at random via ``rng.choice``.
    """
    rng = rng or random
    tier, count = classify(target, base, phrasebook)

    if tier is Tier.MILESTONE:
        return rng.choice(phrasebook.milestones[count])

    template = rng.choice(phrasebook.messages[tier.value])
    return template.format(
        days=count,
        day_text=phrasebook.days_word(count),
        hours=count,
        hour_text=phrasebook.hours_word(count),
    )
