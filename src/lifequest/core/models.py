"""Engine state models and snapshot (de)serialization.

The snapshot format is the camelCase JSON document shared with the remote
mirror, so every model serializes by alias. Loading is lenient: unknown keys
are ignored, missing keys fall back to defaults, and a handful of legacy
spellings from older clients are accepted.
"""

from __future__ import annotations

import json
import re
import uuid
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from lifequest.core.constants import (
    LEGACY_TRACKING_KINDS,
    QUEST_TYPE_ORDER,
    STARTING_LEVEL,
    QuestType,
    TrackingKind,
)

# Keys a store may attach to the document that are not engine state
SNAPSHOT_METADATA_FIELDS: frozenset[str] = frozenset({"lastUpdated"})

DAY_ID_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
WEEK_ID_PATTERN = re.compile(r"\d{4}-\d{2}")


def new_id() -> str:
    return uuid.uuid4().hex


def _lenient_datetime(value: Any) -> datetime | None:
    """Parse a timestamp, mapping anything unparseable to None."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


def _legacy_marker_date(value: str) -> date | None:
    """Date of an older level-up marker.

    Older clients wrote either ``Mon Oct 19 2026`` or an ISO timestamp.
    Aware timestamps are read in the host's local zone.
    """
    try:
        return datetime.strptime(value, "%a %b %d %Y").date()
    except ValueError:
        pass
    ts = _lenient_datetime(value)
    if ts is None:
        return None
    return ts.astimezone().date() if ts.tzinfo else ts.date()


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Reward(_Model):
    """Coins paid out when a quest completes."""

    coins: int = 0


class Quest(_Model):
    """A trackable task with a cadence, a target and a reward."""

    id: str = Field(default_factory=new_id)
    quest_type: QuestType = Field(alias="type")
    title: str
    description: str = ""
    tracking_kind: TrackingKind = Field(
        default=TrackingKind.UNIT,
        validation_alias=AliasChoices("trackingKind", "trackingType", "tracking_kind"),
        serialization_alias="trackingKind",
    )
    target_amount: float = 1
    current_amount: float = 0
    completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None
    reward: Reward = Field(default_factory=Reward)

    @field_validator("tracking_kind", mode="before")
    @classmethod
    def _legacy_kind(cls, value: Any) -> Any:
        if value is None:
            return TrackingKind.UNIT
        if isinstance(value, str) and value in LEGACY_TRACKING_KINDS:
            return LEGACY_TRACKING_KINDS[value]
        return value

    @field_validator("target_amount", mode="before")
    @classmethod
    def _default_target(cls, value: Any) -> Any:
        # Unit quests from older clients stored no target at all
        return 1 if value is None else value

    @field_validator("current_amount", mode="before")
    @classmethod
    def _default_current(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("completed_at", "created_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return _lenient_datetime(value)

    @property
    def remaining(self) -> float:
        return max(self.target_amount - self.current_amount, 0)


class Purchase(_Model):
    """A real-life purchase paid for with coins."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    coin_cost: int = Field(
        validation_alias=AliasChoices("coinCost", "cost", "coin_cost"),
        serialization_alias="coinCost",
    )
    real_cost: float | None = None
    purchased_at: datetime | None = None

    @field_validator("purchased_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return _lenient_datetime(value)


def empty_quest_book() -> dict[QuestType, list[Quest]]:
    return {quest_type: [] for quest_type in QUEST_TYPE_ORDER}


class GameState(_Model):
    """Everything the engine owns; serialized whole as the snapshot."""

    # Economy
    coins: int = 0
    total_earned: int = 0

    # Levels
    daily_level: int = STARTING_LEVEL
    weekly_level: int = STARTING_LEVEL
    last_daily_level_up_date: str | None = None
    last_weekly_level_up_date: str | None = None

    # Reset bookkeeping
    last_daily_reset_date: datetime | None = None
    last_weekly_reset_date: datetime | None = None
    last_monthly_reset_date: datetime | None = None

    # History
    completed_days: list[str] = Field(default_factory=list)
    completed_weeks: list[str] = Field(default_factory=list)
    total_quests_completed: int = 0
    total_daily_quests_completed: int = 0
    total_weekly_quests_completed: int = 0
    total_monthly_quests_completed: int = 0

    quests: dict[QuestType, list[Quest]] = Field(default_factory=empty_quest_book)
    purchases: list[Purchase] = Field(default_factory=list)

    @field_validator(
        "last_daily_reset_date",
        "last_weekly_reset_date",
        "last_monthly_reset_date",
        mode="before",
    )
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return _lenient_datetime(value)

    @field_validator("last_daily_level_up_date", mode="before")
    @classmethod
    def _day_marker(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        if DAY_ID_PATTERN.fullmatch(value):
            return value
        day = _legacy_marker_date(value)
        return day.isoformat() if day else None

    @field_validator("last_weekly_level_up_date", mode="before")
    @classmethod
    def _week_marker(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        if WEEK_ID_PATTERN.fullmatch(value):
            return value
        day = _legacy_marker_date(value)
        if day is None:
            return None
        year, week, _ = day.isocalendar()
        return f"{year:04d}-{week:02d}"

    @field_validator("quests", mode="before")
    @classmethod
    def _normalize_quests(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return empty_quest_book()
        known = {quest_type.value for quest_type in QUEST_TYPE_ORDER}
        book: dict[str, list[Any]] = {}
        for key, items in value.items():
            bucket = key.value if isinstance(key, QuestType) else key
            if bucket not in known:
                continue
            book[bucket] = [
                {**item, "type": bucket} if isinstance(item, Mapping) else item
                for item in (items or [])
            ]
        return book

    @field_validator("quests", mode="after")
    @classmethod
    def _fill_buckets(cls, value: dict[QuestType, list[Quest]]) -> dict[QuestType, list[Quest]]:
        return {quest_type: value.get(quest_type, []) for quest_type in QUEST_TYPE_ORDER}

    @field_validator("purchases", mode="before")
    @classmethod
    def _drop_unpaid(cls, value: Any) -> Any:
        # Wishlist entries from the two-phase era never debited coins
        if not isinstance(value, list):
            return []
        return [
            item for item in value
            if not (isinstance(item, Mapping) and item.get("purchased") is False)
        ]

    @field_validator("completed_days", "completed_weeks", mode="after")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return _unique(value)

    def all_quests(self) -> list[Quest]:
        return [quest for quest_type in QUEST_TYPE_ORDER for quest in self.quests[quest_type]]


def to_snapshot(state: GameState) -> dict[str, Any]:
    """Dump state as the plain JSON-compatible snapshot document."""
    return state.model_dump(mode="json", by_alias=True)


def from_snapshot(data: Mapping[str, Any]) -> GameState:
    """Build state from a snapshot document, ignoring store metadata."""
    payload = {key: value for key, value in data.items() if key not in SNAPSHOT_METADATA_FIELDS}
    return GameState.model_validate(payload)


def fingerprint(snapshot: Mapping[str, Any]) -> str:
    """Canonical JSON used to tell whether two snapshots differ."""
    payload = {key: value for key, value in snapshot.items() if key not in SNAPSHOT_METADATA_FIELDS}
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
