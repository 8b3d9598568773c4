"""Local snapshot store backed by the SQL database."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lifequest.database.models import SnapshotRecord
from lifequest.storage.base import Snapshot, SnapshotStore


class DatabaseSnapshotStore(SnapshotStore):
    """Keeps the latest snapshot in a single row keyed by installation id."""

    name = "database"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        installation_id: str,
    ) -> None:
        self._session_factory = session_factory
        self.installation_id = installation_id

    async def _load(self) -> dict[str, Any] | None:
        async with self._session_factory() as session:
            record = await session.get(SnapshotRecord, self.installation_id)
            if record is None:
                return None
            return dict(record.data)

    async def _save(self, snapshot: Snapshot) -> None:
        async with self._session_factory() as session:
            record = await session.get(SnapshotRecord, self.installation_id)
            if record is None:
                session.add(SnapshotRecord(installation_id=self.installation_id, data=snapshot))
            else:
                record.data = snapshot
            await session.commit()
