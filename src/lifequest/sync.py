"""Mirror engine state to the local store and the optional remote store.

Sync is last-write-wins at snapshot granularity: an inbound remote snapshot
replaces the whole engine state, and outbound saves write the whole state.
Outbound saves are debounced and skipped when the snapshot's content matches
what was last saved or applied.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Any

from pydantic import ValidationError as SnapshotFormatError

from lifequest.core.engine import QuestEngine
from lifequest.core.models import GameState, fingerprint, from_snapshot, to_snapshot
from lifequest.logging import get_logger
from lifequest.storage.base import SnapshotStore, Unsubscribe

logger = get_logger(__name__)


class SnapshotSync:
    """Loads, saves and live-updates one engine's state."""

    def __init__(
        self,
        engine: QuestEngine,
        local: SnapshotStore | None,
        remote: SnapshotStore | None = None,
        debounce_seconds: float = 2.0,
    ) -> None:
        self._engine = engine
        self._local = local
        self._remote = remote
        self._debounce_seconds = debounce_seconds

        self._loaded = False
        self._closed = False
        self._last_fingerprint: str | None = None
        self._save_task: asyncio.Task[None] | None = None
        self._flush_lock = asyncio.Lock()
        self._remove_listener = None
        self._unsubscribe: Unsubscribe | None = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def save_pending(self) -> bool:
        return self._save_task is not None and not self._save_task.done()

    @property
    def _stores(self) -> list[SnapshotStore]:
        return [store for store in (self._local, self._remote) if store is not None]

    async def start(self) -> None:
        """Initial load, then live updates from the remote store.

        A remote snapshot wins over the local one. With neither, the engine
        keeps its default state.
        """
        loaded: dict[str, Any] | None = None
        for store in self._stores:
            data = await store.load_snapshot()
            if data is not None:
                loaded = data
                logger.info("Snapshot loaded", store=store.name)

        if loaded is None or not self._apply(loaded, source="load"):
            self._last_fingerprint = fingerprint(self._engine.snapshot())

        self._loaded = True
        self._remove_listener = self._engine.add_listener(self._on_state_change)

        if self._remote is not None:
            self._unsubscribe = await self._remote.subscribe_snapshot(self.on_remote_snapshot)

    def on_remote_snapshot(self, data: dict[str, Any]) -> None:
        """Apply a full-state replacement pushed by the remote store."""
        if not self._loaded or self._closed:
            logger.debug("Ignoring remote snapshot before initial load")
            return
        self._apply(data, source="remote")

    def _apply(self, data: dict[str, Any], source: str) -> bool:
        try:
            state = from_snapshot(data)
        except SnapshotFormatError as e:
            logger.error("Rejected unreadable snapshot", source=source, error=str(e))
            return False

        incoming = fingerprint(to_snapshot(state))
        if incoming == self._last_fingerprint:
            return True

        # Record before replacing so the change listener sees nothing to save
        self._last_fingerprint = incoming
        self._engine.replace_state(state)
        logger.info("Snapshot applied", source=source)
        return True

    def _on_state_change(self, state: GameState) -> None:
        if self._closed:
            return
        self._cancel_pending()
        if fingerprint(to_snapshot(state)) == self._last_fingerprint:
            return
        self._save_task = asyncio.get_running_loop().create_task(self._debounced_save())

    def _cancel_pending(self) -> None:
        if self._save_task is not None and not self._save_task.done():
            self._save_task.cancel()
        self._save_task = None

    async def _debounced_save(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        # Past the quiet window; a new change must not cancel the write itself
        self._save_task = None
        await self.flush()

    async def flush(self) -> bool:
        """Save now if the state differs from the last saved snapshot.

        Returns True when every store accepted the write. A failed write
        leaves the state marked unsaved, so the next change retries it.
        """
        async with self._flush_lock:
            snapshot = self._engine.snapshot()
            current = fingerprint(snapshot)
            if current == self._last_fingerprint:
                return False

            saved = True
            for store in self._stores:
                saved = await store.save_snapshot(snapshot) and saved

            if saved:
                self._last_fingerprint = current
            return saved

    async def close(self) -> None:
        """Stop syncing. Pending changes are flushed once; nothing is written afterwards."""
        if self._closed:
            return
        self._closed = True

        if self._remove_listener is not None:
            self._remove_listener()
        if self._save_task is not None:
            self._save_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._save_task
            self._save_task = None
        if self._unsubscribe is not None:
            await self._unsubscribe()
            self._unsubscribe = None

        if self._loaded:
            await self.flush()
        logger.info("Snapshot sync stopped")
