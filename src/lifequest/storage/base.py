"""Snapshot store interface.

Stores fail soft: any error while loading, saving or subscribing is logged
and turned into ``None`` / ``False`` / a no-op unsubscribe, so storage
trouble never reaches quest logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from lifequest.core.models import SNAPSHOT_METADATA_FIELDS
from lifequest.logging import get_logger

logger = get_logger(__name__)

Snapshot = dict[str, Any]
SnapshotCallback = Callable[[Snapshot], None]
Unsubscribe = Callable[[], Awaitable[None]]


def strip_metadata(data: Mapping[str, Any]) -> Snapshot:
    """Drop store-attached metadata such as ``lastUpdated``."""
    return {key: value for key, value in data.items() if key not in SNAPSHOT_METADATA_FIELDS}


async def _noop_unsubscribe() -> None:
    return None


class SnapshotStore(ABC):
    """Get/set/subscribe access to one installation's snapshot document."""

    name: str = "store"

    @abstractmethod
    async def _load(self) -> Mapping[str, Any] | None:
        """Fetch the raw document, or None if there is none."""

    @abstractmethod
    async def _save(self, snapshot: Snapshot) -> None:
        """Write the document, replacing what was there."""

    async def _subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        """Start pushing remote replacements to ``callback``.

        Stores without a change feed never push anything.
        """
        return _noop_unsubscribe

    async def load_snapshot(self) -> Snapshot | None:
        try:
            data = await self._load()
        except Exception as e:
            logger.error("Failed to load snapshot", store=self.name, error=str(e))
            return None
        if data is None:
            return None
        return strip_metadata(data)

    async def save_snapshot(self, snapshot: Snapshot) -> bool:
        try:
            await self._save(strip_metadata(snapshot))
        except Exception as e:
            logger.error("Failed to save snapshot", store=self.name, error=str(e))
            return False
        logger.debug("Snapshot saved", store=self.name)
        return True

    async def subscribe_snapshot(self, callback: SnapshotCallback) -> Unsubscribe:
        try:
            return await self._subscribe(callback)
        except Exception as e:
            logger.error("Failed to subscribe to snapshots", store=self.name, error=str(e))
            return _noop_unsubscribe
