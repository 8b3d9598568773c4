"""
Unit tests for SnapshotSync: initial load, debounced saves, inbound
replacements and teardown.
"""

import asyncio

import pytest

from lifequest.core.constants import QuestType, TrackingKind
from lifequest.core.engine import QuestEngine
from lifequest.sync import SnapshotSync
from tests.conftest import ManualClock, MemoryStore

DEBOUNCE = 0.01


async def _settle() -> None:
    await asyncio.sleep(DEBOUNCE * 10)


@pytest.fixture
def saved_state():
    """Snapshot written by another device."""
    other = QuestEngine(ManualClock())
    other.run_resets()
    other.replace_state({**other.snapshot(), "coins": 100, "totalEarned": 100})
    other.create_quest(QuestType.WEEKLY, "Gym", TrackingKind.UNIT, 3)
    return other.snapshot()


@pytest.mark.asyncio
class TestInitialLoad:
    async def test_empty_stores_keep_defaults(self, engine, local_store, remote_store):
        sync = SnapshotSync(engine, local_store, remote_store, debounce_seconds=DEBOUNCE)
        before = engine.snapshot()

        await sync.start()
        await _settle()

        assert sync.loaded is True
        assert engine.snapshot() == before
        assert local_store.saves == []
        assert remote_store.callback is not None

    async def test_local_snapshot_applied(self, clock, saved_state):
        engine = QuestEngine(clock)
        local = MemoryStore(saved_state)
        sync = SnapshotSync(engine, local, debounce_seconds=DEBOUNCE)

        await sync.start()
        await _settle()

        assert engine.snapshot() == saved_state
        # Loading is not a change worth saving
        assert local.saves == []
        assert sync.save_pending is False

    async def test_remote_wins_over_local(self, clock, saved_state):
        engine = QuestEngine(clock)
        local = MemoryStore({"coins": 3})
        remote = MemoryStore(saved_state)

        await SnapshotSync(engine, local, remote, debounce_seconds=DEBOUNCE).start()

        assert engine.state.coins == 100
        assert engine.snapshot() == saved_state

    async def test_failed_load_is_soft(self, engine, local_store):
        local_store.fail_loads = True
        sync = SnapshotSync(engine, local_store, debounce_seconds=DEBOUNCE)

        await sync.start()

        assert sync.loaded is True

    async def test_inbound_ignored_before_load(self, engine, local_store, saved_state):
        sync = SnapshotSync(engine, local_store, debounce_seconds=DEBOUNCE)
        before = engine.snapshot()

        sync.on_remote_snapshot(saved_state)

        assert engine.snapshot() == before


@pytest.mark.asyncio
class TestOutboundSaves:
    async def test_changes_are_debounced(self, engine, local_store, remote_store):
        sync = SnapshotSync(engine, local_store, remote_store, debounce_seconds=DEBOUNCE)
        await sync.start()

        quest = engine.create_quest(QuestType.DAILY, "Read", TrackingKind.PAGES, 30)
        for _ in range(3):
            engine.add_progress(QuestType.DAILY, quest.id, 5)
        assert sync.save_pending is True

        await _settle()

        assert len(local_store.saves) == 1
        assert len(remote_store.saves) == 1
        assert local_store.saves[0] == engine.snapshot()
        assert local_store.saves[0]["quests"]["daily"][0]["currentAmount"] == 15

    async def test_unchanged_content_not_saved(self, engine, local_store):
        sync = SnapshotSync(engine, local_store, debounce_seconds=DEBOUNCE)
        await sync.start()
        quest = engine.create_quest(QuestType.DAILY, "Read", TrackingKind.PAGES, 30)
        await _settle()
        assert len(local_store.saves) == 1

        # Commits that leave the content as it was
        engine.update_quest(QuestType.DAILY, quest.id, title="Read")
        engine.replace_state(engine.snapshot())
        await _settle()

        assert len(local_store.saves) == 1

    async def test_failed_save_is_retried(self, engine, local_store):
        sync = SnapshotSync(engine, local_store, debounce_seconds=DEBOUNCE)
        await sync.start()

        local_store.fail_saves = True
        engine.create_quest(QuestType.DAILY, "Read", TrackingKind.PAGES, 30)
        await _settle()
        assert local_store.saves == []

        local_store.fail_saves = False
        assert await sync.flush() is True
        assert len(local_store.saves) == 1
        assert await sync.flush() is False


@pytest.mark.asyncio
class TestInboundSnapshots:
    async def test_remote_replacement(self, engine, local_store, remote_store, saved_state):
        sync = SnapshotSync(engine, local_store, remote_store, debounce_seconds=DEBOUNCE)
        await sync.start()

        remote_store.push({**saved_state, "lastUpdated": "2026-10-19T10:00:00Z"})
        await _settle()

        assert engine.snapshot() == saved_state
        # Applied state is not echoed back
        assert remote_store.saves == []
        assert local_store.saves == []

    async def test_own_echo_is_ignored(self, engine, local_store, remote_store):
        sync = SnapshotSync(engine, local_store, remote_store, debounce_seconds=DEBOUNCE)
        await sync.start()
        engine.create_quest(QuestType.DAILY, "Read", TrackingKind.PAGES, 30)
        await _settle()

        notified = []
        engine.add_listener(notified.append)
        remote_store.push(remote_store.saves[-1])

        assert notified == []

    async def test_unreadable_snapshot_rejected(self, engine, local_store, remote_store):
        sync = SnapshotSync(engine, local_store, remote_store, debounce_seconds=DEBOUNCE)
        await sync.start()
        before = engine.snapshot()

        remote_store.push({"coins": "lots", "quests": {"daily": [{"title": "No type or id"}]}})

        assert engine.snapshot() == before


@pytest.mark.asyncio
class TestClose:
    async def test_close_flushes_pending_change_once(self, engine, local_store, remote_store):
        sync = SnapshotSync(engine, local_store, remote_store, debounce_seconds=60)
        await sync.start()
        engine.create_quest(QuestType.DAILY, "Read", TrackingKind.PAGES, 30)

        await sync.close()

        assert len(local_store.saves) == 1
        assert remote_store.unsubscribed is True
        assert sync.save_pending is False

        # Nothing is written after close
        engine.create_quest(QuestType.DAILY, "Write", TrackingKind.UNIT, 1)
        await _settle()
        await sync.close()
        assert len(local_store.saves) == 1

    async def test_close_without_changes_writes_nothing(self, engine, local_store):
        sync = SnapshotSync(engine, local_store, debounce_seconds=DEBOUNCE)
        await sync.start()

        await sync.close()

        assert local_store.saves == []

    async def test_close_before_start(self, engine, local_store):
        sync = SnapshotSync(engine, local_store, debounce_seconds=DEBOUNCE)
        await sync.close()
        assert local_store.saves == []
