"""
Pytest configuration and shared fixtures for the LifeQuest test suite.

Provides a manually driven clock, engine factories, an in-memory snapshot
store and a small in-process stand-in for the Redis client.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from lifequest.core.clock import Clock
from lifequest.core.constants import QuestType, TrackingKind
from lifequest.core.engine import QuestEngine
from lifequest.storage.base import Snapshot, SnapshotCallback, SnapshotStore, Unsubscribe

# Monday of ISO week 43, 2026
START = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# CLOCK & ENGINE
# ============================================================================


class ManualClock(Clock):
    """Clock whose time only moves when a test moves it."""

    def __init__(self, current: datetime = START, tz=timezone.utc) -> None:
        super().__init__(tz)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, *args: int, **kwargs: int) -> datetime:
        """Jump to ``datetime(*args)`` in the clock's zone."""
        self.current = datetime(*args, tzinfo=self.tz, **kwargs)
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def engine(clock: ManualClock) -> QuestEngine:
    """Engine with every cadence already reset for the starting cycle."""
    engine = QuestEngine(clock)
    engine.run_resets()
    return engine


@pytest.fixture
def rich_engine(engine: QuestEngine) -> QuestEngine:
    """Engine holding a few quests, some progress and 100 coins."""
    water = engine.create_quest(QuestType.DAILY, "Drink water", TrackingKind.MILLILITERS, 2000)
    engine.create_quest(QuestType.DAILY, "Stretch", TrackingKind.UNIT, 1)
    gym = engine.create_quest(QuestType.WEEKLY, "Gym", TrackingKind.UNIT, 3)
    book = engine.create_quest(QuestType.MONTHLY, "Read a book", TrackingKind.PAGES, 300)
    engine.complete_quest(QuestType.MONTHLY, book.id)
    engine.add_progress(QuestType.DAILY, water.id, 750)
    engine.add_progress(QuestType.WEEKLY, gym.id, 1)
    return engine


# ============================================================================
# STORES
# ============================================================================


class MemoryStore(SnapshotStore):
    """Snapshot store kept in a dict; can be told to fail."""

    name = "memory"

    def __init__(self, data: Snapshot | None = None) -> None:
        self.data = data
        self.saves: list[Snapshot] = []
        self.fail_saves = False
        self.fail_loads = False
        self.callback: SnapshotCallback | None = None
        self.unsubscribed = False

    async def _load(self) -> Snapshot | None:
        if self.fail_loads:
            raise ConnectionError("store offline")
        return self.data

    async def _save(self, snapshot: Snapshot) -> None:
        if self.fail_saves:
            raise ConnectionError("store offline")
        self.data = snapshot
        self.saves.append(snapshot)

    async def _subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        self.callback = callback

        async def unsubscribe() -> None:
            self.unsubscribed = True
            self.callback = None

        return unsubscribe

    def push(self, data: Snapshot) -> None:
        """Deliver a snapshot as if another device had saved it."""
        assert self.callback is not None
        self.callback(data)


@pytest.fixture
def local_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def remote_store() -> MemoryStore:
    return MemoryStore()


# ============================================================================
# REDIS STAND-IN
# ============================================================================


class FakePubSub:
    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.channels: set[str] = set()
        self.closed = False

    async def subscribe(self, *channels: str) -> None:
        for channel in channels:
            self.channels.add(channel)
            self._redis.subscribers.setdefault(channel, []).append(self)
            self._queue.put_nowait({"type": "subscribe", "channel": channel, "data": 1})

    async def unsubscribe(self, *channels: str) -> None:
        for channel in channels or tuple(self.channels):
            self.channels.discard(channel)
            subscribers = self._redis.subscribers.get(channel, [])
            if self in subscribers:
                subscribers.remove(self)

    async def listen(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            yield await self._queue.get()

    async def aclose(self) -> None:
        self.closed = True

    def deliver(self, channel: str, data: Any) -> None:
        self._queue.put_nowait({"type": "message", "channel": channel, "data": data})


class FakeRedis:
    """The slice of ``redis.asyncio.Redis`` the remote store uses."""

    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.published: list[tuple[str, str]] = []
        self.subscribers: dict[str, list[FakePubSub]] = {}

    async def get(self, key: str) -> bytes | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.values[key] = value.encode("utf-8")
        return True

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        subscribers = self.subscribers.get(channel, [])
        for pubsub in subscribers:
            pubsub.deliver(channel, message.encode("utf-8"))
        return len(subscribers)

    def pubsub(self) -> FakePubSub:
        return FakePubSub(self)

    def stored_json(self, key: str) -> dict[str, Any]:
        return json.loads(self.values[key])


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
