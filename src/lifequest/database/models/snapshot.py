"""Snapshot model: one saved engine state per installation."""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from lifequest.database.models.base import Base, TimestampMixin


class SnapshotRecord(Base, TimestampMixin):
    """The latest snapshot document for an installation."""

    __tablename__ = "snapshots"

    # Opaque per-installation id, e.g. "user-1760870400000"
    installation_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Full camelCase snapshot document
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<SnapshotRecord {self.installation_id}>"
