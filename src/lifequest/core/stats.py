"""Derived statistics: completion rates, month progress, calendar and streaks.

Nothing here mutates state; every value is recomputed from a ``GameState``.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from lifequest.core.clock import Clock
from lifequest.core.constants import QuestType
from lifequest.core.models import GameState


@dataclass
class CalendarDay:
    """One cell of a month calendar; ``day`` is None for padding cells."""

    day: int | None = None
    date_id: str | None = None
    completed: bool = False


@dataclass
class StatsSummary:
    """Everything the stats view shows."""

    daily_level: int
    weekly_level: int
    coins: int
    total_earned: int
    total_spent: int
    total_quests_completed: int
    completions_by_type: dict[QuestType, int] = field(default_factory=dict)
    active_quests: int = 0
    completed_quests: int = 0
    completion_rate: int = 0
    today: int = 1
    days_in_month: int = 30
    completed_days_this_month: int = 0
    weeks_in_month: int = 0
    completed_weeks_this_month: int = 0
    current_streak: int = 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def completion_rate(state: GameState) -> int:
    """Percentage of current quests completed this cycle."""
    quests = state.all_quests()
    if not quests:
        return 0
    done = sum(1 for quest in quests if quest.completed)
    return _round_half_up(done / len(quests) * 100)


def completions_by_type(state: GameState) -> dict[QuestType, int]:
    """All-time completions per cadence."""
    return {
        QuestType.DAILY: state.total_daily_quests_completed,
        QuestType.WEEKLY: state.total_weekly_quests_completed,
        QuestType.MONTHLY: state.total_monthly_quests_completed,
    }


def _day_id(day: date) -> str:
    return day.isoformat()


def _week_id(day: date) -> str:
    iso = day.isocalendar()
    return f"{iso.year:04d}-{iso.week:02d}"


def weeks_in_month(year: int, month: int) -> set[str]:
    """ISO week ids touching any day of the month."""
    days = calendar.monthrange(year, month)[1]
    return {_week_id(date(year, month, day)) for day in range(1, days + 1)}


def completed_days_in_month(completed_days: Iterable[str], year: int, month: int) -> int:
    prefix = f"{year:04d}-{month:02d}-"
    return sum(1 for day in set(completed_days) if day.startswith(prefix))


def completed_weeks_in_month(completed_weeks: Iterable[str], year: int, month: int) -> int:
    weeks = weeks_in_month(year, month)
    return sum(1 for week in set(completed_weeks) if week in weeks)


def month_calendar(
    completed_days: Iterable[str], year: int, month: int
) -> list[list[CalendarDay]]:
    """Sunday-first grid of the month with completed days marked."""
    done = set(completed_days)
    grid = calendar.Calendar(firstweekday=calendar.SUNDAY).monthdayscalendar(year, month)
    weeks = []
    for row in grid:
        week = []
        for day in row:
            if day == 0:
                week.append(CalendarDay())
                continue
            date_id = _day_id(date(year, month, day))
            week.append(CalendarDay(day=day, date_id=date_id, completed=date_id in done))
        weeks.append(week)
    return weeks


def current_streak(completed_days: Iterable[str], today: date) -> int:
    """Consecutive fully-completed days ending today.

    Today not being done yet does not break the streak; counting then starts
    from yesterday.
    """
    done = set(completed_days)
    cursor = today if _day_id(today) in done else today - timedelta(days=1)
    streak = 0
    while _day_id(cursor) in done:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def build_stats(state: GameState, clock: Clock) -> StatsSummary:
    """Summarize ``state`` as of the clock's current local date."""
    year, month, day = clock.local_date_parts(clock.now())
    quests = state.all_quests()

    return StatsSummary(
        daily_level=state.daily_level,
        weekly_level=state.weekly_level,
        coins=state.coins,
        total_earned=state.total_earned,
        total_spent=sum(p.coin_cost for p in state.purchases),
        total_quests_completed=state.total_quests_completed,
        completions_by_type=completions_by_type(state),
        active_quests=len(quests),
        completed_quests=sum(1 for quest in quests if quest.completed),
        completion_rate=completion_rate(state),
        today=day,
        days_in_month=calendar.monthrange(year, month)[1],
        completed_days_this_month=completed_days_in_month(state.completed_days, year, month),
        weeks_in_month=len(weeks_in_month(year, month)),
        completed_weeks_this_month=completed_weeks_in_month(state.completed_weeks, year, month),
        current_streak=current_streak(state.completed_days, date(year, month, day)),
    )

