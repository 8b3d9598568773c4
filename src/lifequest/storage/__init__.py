"""Snapshot persistence collaborators."""

from lifequest.storage.base import SnapshotStore, strip_metadata
from lifequest.storage.identity import get_installation_id
from lifequest.storage.local import DatabaseSnapshotStore
from lifequest.storage.remote import RedisSnapshotStore

__all__ = [
    "SnapshotStore",
    "DatabaseSnapshotStore",
    "RedisSnapshotStore",
    "get_installation_id",
    "strip_metadata",
]
