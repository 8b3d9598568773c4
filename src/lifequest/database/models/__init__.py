"""Database models package."""

from lifequest.database.models.base import Base, TimestampMixin
from lifequest.database.models.snapshot import SnapshotRecord

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Core
    "SnapshotRecord",
]
