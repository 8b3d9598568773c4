"""Cycle identifiers for each quest cadence.

A cycle identifier is a string that is equal for two timestamps exactly when
they fall in the same day / ISO week / month. Resets and level-up guards only
ever compare identifiers, never raw timestamps.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from lifequest.core.clock import Clock
from lifequest.core.constants import QuestType


def day_id(clock: Clock, ts: datetime) -> str:
    """``YYYY-MM-DD`` in local time."""
    year, month, day = clock.local_date_parts(ts)
    return f"{year:04d}-{month:02d}-{day:02d}"


def week_id(clock: Clock, ts: datetime) -> str:
    """``YYYY-WW`` using the ISO year and ISO week number."""
    year, week = clock.iso_week_number(ts)
    return f"{year:04d}-{week:02d}"


def month_id(clock: Clock, ts: datetime) -> str:
    """``YYYY-MM`` in local time."""
    year, month, _ = clock.local_date_parts(ts)
    return f"{year:04d}-{month:02d}"


PERIOD_ID: dict[QuestType, Callable[[Clock, datetime], str]] = {
    QuestType.DAILY: day_id,
    QuestType.WEEKLY: week_id,
    QuestType.MONTHLY: month_id,
}


def period_id(clock: Clock, quest_type: QuestType, ts: datetime) -> str:
    """Cycle identifier of ``ts`` for the given cadence."""
    return PERIOD_ID[quest_type](clock, ts)


def same_period(clock: Clock, quest_type: QuestType, a: datetime | None, b: datetime) -> bool:
    """True when ``a`` is set and shares a cycle with ``b``."""
    if a is None:
        return False
    return period_id(clock, quest_type, a) == period_id(clock, quest_type, b)
