"""Remote snapshot mirror on Redis.

The document lives under ``lifequest:users:<installation id>``. Every save
also publishes the document on ``<key>:updates`` so other devices sharing the
installation id receive it as a full replacement.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.client import PubSub

from lifequest.core.errors import StoreError
from lifequest.logging import get_logger
from lifequest.storage.base import (
    Snapshot,
    SnapshotCallback,
    SnapshotStore,
    Unsubscribe,
    strip_metadata,
)

logger = get_logger(__name__)

KEY_PREFIX = "lifequest:users"


def _decode(raw: Any, operation: str) -> dict[str, Any]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StoreError(operation, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise StoreError(operation, "snapshot is not an object")
    return data


class RedisSnapshotStore(SnapshotStore):
    """Snapshot document in Redis with pub/sub change notifications."""

    name = "redis"

    def __init__(self, redis: Redis, installation_id: str) -> None:
        self._redis = redis
        self.key = f"{KEY_PREFIX}:{installation_id}"
        self.channel = f"{self.key}:updates"

    async def _load(self) -> dict[str, Any] | None:
        raw = await self._redis.get(self.key)
        if raw is None:
            return None
        return _decode(raw, "load")

    async def _save(self, snapshot: Snapshot) -> None:
        document = {**snapshot, "lastUpdated": datetime.now(timezone.utc).isoformat()}
        payload = json.dumps(document)
        await self._redis.set(self.key, payload)
        await self._redis.publish(self.channel, payload)

    async def _subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self.channel)
        task = asyncio.create_task(self._listen(pubsub, callback), name="lifequest-snapshot-listener")
        logger.info("Subscribed to snapshot updates", channel=self.channel)

        async def unsubscribe() -> None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
            logger.info("Unsubscribed from snapshot updates", channel=self.channel)

        return unsubscribe

    async def _listen(self, pubsub: PubSub, callback: SnapshotCallback) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    data = _decode(message.get("data"), "subscribe")
                except StoreError as e:
                    logger.warning("Ignoring unreadable snapshot update", error=str(e))
                    continue
                callback(strip_metadata(data))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Drop the subscription; the local state keeps working without it
            logger.error("Snapshot subscription dropped", channel=self.channel, error=str(e))
