"""
Unit tests for cycle identifiers and the daily/weekly/monthly resets.
"""

from datetime import datetime, timedelta, timezone

import pytest

from lifequest.core.clock import Clock
from lifequest.core.constants import QuestType, TrackingKind
from lifequest.core.engine import QuestEngine
from lifequest.core.periods import day_id, month_id, period_id, same_period, week_id
from tests.conftest import ManualClock


def _progressed_engine(clock: ManualClock) -> QuestEngine:
    engine = QuestEngine(clock)
    engine.run_resets()
    for quest_type in QuestType:
        quest = engine.create_quest(quest_type, f"{quest_type.value} task", TrackingKind.UNIT, 2)
        engine.add_progress(quest_type, quest.id, 1)
    return engine


class TestPeriodIds:
    def test_formats(self, clock):
        ts = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)
        assert day_id(clock, ts) == "2026-03-05"
        assert week_id(clock, ts) == "2026-10"
        assert month_id(clock, ts) == "2026-03"

    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (datetime(2026, 12, 31), "2026-53"),
            (datetime(2027, 1, 1), "2026-53"),
            (datetime(2027, 1, 3), "2026-53"),
            (datetime(2027, 1, 4), "2027-01"),
            (datetime(2024, 12, 30), "2025-01"),
        ],
    )
    def test_week_uses_iso_year(self, clock, day, expected):
        assert week_id(clock, day.replace(tzinfo=timezone.utc)) == expected

    def test_local_zone_decides_the_day(self):
        clock = ManualClock(tz=timezone(timedelta(hours=-5)))
        late_evening = datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc)

        assert period_id(clock, QuestType.DAILY, late_evening) == "2026-10-19"

    def test_naive_timestamp_is_local_wall_time(self):
        clock = ManualClock(tz=timezone(timedelta(hours=3)))
        assert day_id(clock, datetime(2026, 10, 19, 23, 30)) == "2026-10-19"

    def test_same_period_missing_timestamp(self, clock):
        assert same_period(clock, QuestType.DAILY, None, clock.now()) is False

    def test_clock_requires_now(self):
        with pytest.raises(TypeError):
            Clock()


class TestDailyReset:
    def test_fresh_state_needs_every_reset(self, clock):
        engine = QuestEngine(clock)

        assert engine.needs_refresh() is True
        assert engine.run_resets() == [QuestType.DAILY, QuestType.WEEKLY, QuestType.MONTHLY]
        assert engine.needs_refresh() is False
        assert engine.run_resets() == []

    def test_idempotent_within_day(self, clock):
        engine = _progressed_engine(clock)
        clock.advance(hours=14, minutes=59)

        assert engine.reset_daily() is False
        assert engine.quests(QuestType.DAILY)[0].current_amount == 1

    def test_new_day_clears_progress(self, clock):
        engine = _progressed_engine(clock)
        quest = engine.quests(QuestType.DAILY)[0]
        engine.add_progress(QuestType.DAILY, quest.id, 1)
        coins, level = engine.state.coins, engine.state.daily_level

        clock.set(2026, 10, 20, 0, 0, 1)
        assert engine.reset_daily() is True

        reset = engine.get_quest(QuestType.DAILY, quest.id)
        assert reset.current_amount == 0
        assert reset.completed is False
        assert reset.completed_at is None
        assert engine.state.last_daily_reset_date == clock.now()
        # Rewards and levels survive the reset
        assert engine.state.coins == coins
        assert engine.state.daily_level == level
        # Other cadences untouched
        assert engine.quests(QuestType.WEEKLY)[0].current_amount == 1
        assert engine.reset_daily() is False

    def test_reset_of_empty_bucket_still_records(self, clock):
        engine = QuestEngine(clock)
        assert engine.reset_daily() is True
        assert engine.state.last_daily_reset_date == clock.now()


class TestWeeklyReset:
    def test_sunday_is_same_week(self, clock):
        engine = _progressed_engine(clock)
        clock.set(2026, 10, 25, 23, 59)

        assert engine.reset_weekly() is False
        assert engine.run_resets() == [QuestType.DAILY]

    def test_monday_starts_new_week(self, clock):
        engine = _progressed_engine(clock)
        clock.set(2026, 10, 26, 0, 5)

        assert engine.run_resets() == [QuestType.DAILY, QuestType.WEEKLY]
        assert engine.quests(QuestType.WEEKLY)[0].current_amount == 0
        assert engine.quests(QuestType.MONTHLY)[0].current_amount == 1

    def test_iso_year_boundary(self):
        clock = ManualClock(datetime(2026, 12, 31, 10, 0, tzinfo=timezone.utc))
        engine = _progressed_engine(clock)

        clock.set(2027, 1, 1, 10, 0)
        assert engine.run_resets() == [QuestType.DAILY, QuestType.MONTHLY]
        assert engine.quests(QuestType.WEEKLY)[0].current_amount == 1

        clock.set(2027, 1, 4, 10, 0)
        assert engine.reset_weekly() is True

    def test_weekly_level_id_across_new_year(self):
        clock = ManualClock(datetime(2027, 1, 2, 10, 0, tzinfo=timezone.utc))
        engine = QuestEngine(clock)
        engine.run_resets()
        quest = engine.create_quest(QuestType.WEEKLY, "Gym", TrackingKind.UNIT, 1)

        engine.complete_quest(QuestType.WEEKLY, quest.id)

        assert engine.state.completed_weeks == ["2026-53"]


class TestMonthlyReset:
    def test_month_boundary(self):
        clock = ManualClock(datetime(2026, 10, 31, 22, 0, tzinfo=timezone.utc))
        engine = _progressed_engine(clock)

        clock.advance(hours=1)
        assert engine.reset_monthly() is False

        clock.advance(hours=1)
        assert engine.reset_monthly() is True
        assert engine.quests(QuestType.MONTHLY)[0].current_amount == 0


class TestLoadedTimestamps:
    def test_unparseable_reset_date_counts_as_new_cycle(self, clock):
        engine = QuestEngine(clock)
        engine.replace_state(
            {
                "lastDailyResetDate": "yesterday-ish",
                "lastWeeklyResetDate": clock.now().isoformat(),
                "lastMonthlyResetDate": clock.now().isoformat(),
            }
        )

        assert engine.state.last_daily_reset_date is None
        assert engine.needs_reset(QuestType.DAILY) is True
        assert engine.needs_reset(QuestType.WEEKLY) is False
        assert engine.run_resets() == [QuestType.DAILY]

    def test_needs_refresh_is_read_only(self, engine, clock):
        clock.advance(days=1)
        before = engine.snapshot()

        assert engine.needs_refresh() is True
        assert engine.snapshot() == before

    def test_naive_legacy_timestamp(self, clock):
        engine = QuestEngine(clock)
        engine.replace_state({"lastDailyResetDate": "2026-10-19T07:00:00"})

        assert engine.needs_reset(QuestType.DAILY) is False
