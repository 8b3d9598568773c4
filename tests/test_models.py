"""
Unit tests for the snapshot document: round-trips and legacy loading.
"""

import json

from lifequest.core.constants import QuestType, TrackingKind
from lifequest.core.models import GameState, fingerprint, from_snapshot, to_snapshot


class TestSnapshotRoundTrip:
    def test_round_trip(self, rich_engine):
        snapshot = rich_engine.snapshot()

        restored = from_snapshot(json.loads(json.dumps(snapshot)))

        assert to_snapshot(restored) == snapshot
        assert restored == rich_engine.state

    def test_camel_case_keys(self, rich_engine):
        snapshot = rich_engine.snapshot()

        assert {"coins", "totalEarned", "dailyLevel", "lastDailyResetDate", "completedDays"} <= set(snapshot)
        assert set(snapshot["quests"]) == {"daily", "weekly", "monthly"}
        quest = snapshot["quests"]["daily"][0]
        assert quest["type"] == "daily"
        assert quest["trackingKind"] == "milliliters"
        assert quest["targetAmount"] == 2000
        assert quest["reward"] == {"coins": 5}

    def test_last_updated_is_ignored(self, rich_engine):
        snapshot = rich_engine.snapshot()
        stamped = {**snapshot, "lastUpdated": "2026-10-19T09:00:00Z"}

        assert to_snapshot(from_snapshot(stamped)) == snapshot
        assert fingerprint(stamped) == fingerprint(snapshot)

    def test_fingerprint_ignores_key_order(self):
        assert fingerprint({"a": 1, "b": [1, 2]}) == fingerprint({"b": [1, 2], "a": 1})
        assert fingerprint({"a": 1}) != fingerprint({"a": 2})


class TestLenientLoading:
    def test_empty_document(self):
        state = from_snapshot({})

        assert state == GameState()
        assert state.daily_level == 1
        assert state.weekly_level == 1
        assert set(state.quests) == set(QuestType)

    def test_unknown_keys_ignored(self):
        state = from_snapshot({"coins": 7, "theme": "dark", "experience": 1200})
        assert state.coins == 7

    def test_legacy_quests(self):
        state = from_snapshot(
            {
                "lastDailyLevelUpDate": "Mon Oct 19 2026",
                "lastWeeklyLevelUpDate": "2026-10-21T12:00:00.000Z",
                "quests": {
                    "daily": [
                        {"id": "a", "title": "Water", "trackingType": "drink", "targetAmount": 2000},
                        {"id": "b", "title": "Stretch", "trackingKind": "unit", "targetAmount": None},
                    ],
                    "yearly": [{"id": "c", "title": "Marathon"}],
                    "weekly": [
                        {
                            "id": "d",
                            "title": "Walk",
                            "trackingKind": "walk",
                            "targetAmount": 50000,
                            "currentAmount": None,
                            "reward": {"coins": 25, "xp": 50},
                            "completedAt": "sometime",
                        }
                    ],
                }
            }
        )

        water, stretch = state.quests[QuestType.DAILY]
        assert water.quest_type is QuestType.DAILY
        assert water.tracking_kind is TrackingKind.MILLILITERS
        assert stretch.target_amount == 1
        walk = state.quests[QuestType.WEEKLY][0]
        assert walk.tracking_kind is TrackingKind.STEPS
        assert walk.current_amount == 0
        assert walk.reward.coins == 25
        assert walk.completed_at is None
        assert state.quests[QuestType.MONTHLY] == []
        assert "yearly" not in to_snapshot(state)["quests"]
        assert state.last_daily_level_up_date == "2026-10-19"
        assert state.last_weekly_level_up_date == "2026-43"

    def test_legacy_level_up_marker_blocks_second_level_up(self, engine, clock):
        engine.replace_state(
            {
                "dailyLevel": 4,
                "lastDailyLevelUpDate": "Mon Oct 19 2026",
                "lastDailyResetDate": clock.now().isoformat(),
                "quests": {
                    "daily": [{"id": "a", "title": "Stretch", "trackingKind": "unit", "targetAmount": 1}],
                },
            }
        )

        result = engine.complete_quest(QuestType.DAILY, "a")

        assert result.leveled_up is None
        assert engine.state.daily_level == 4

    def test_unreadable_level_up_markers_are_dropped(self):
        state = from_snapshot({"lastDailyLevelUpDate": "yesterday", "lastWeeklyLevelUpDate": 12})

        assert state.last_daily_level_up_date is None
        assert state.last_weekly_level_up_date is None

    def test_legacy_purchases(self):
        state = from_snapshot(
            {
                "purchases": [
                    {"id": "p1", "name": "Shirt", "cost": 80, "purchased": True},
                    {"id": "p2", "name": "Shoes", "cost": 300, "purchased": False},
                    {"id": "p3", "name": "Book", "coinCost": 40, "realCost": 15.99},
                ]
            }
        )

        assert [p.id for p in state.purchases] == ["p1", "p3"]
        assert state.purchases[0].coin_cost == 80
        assert state.purchases[1].real_cost == 15.99
        assert "cost" not in to_snapshot(state)["purchases"][0]

    def test_completion_logs_deduplicated(self):
        state = from_snapshot({"completedDays": ["2026-10-18", "2026-10-19", "2026-10-18"]})
        assert state.completed_days == ["2026-10-18", "2026-10-19"]
