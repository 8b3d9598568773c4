"""Centralized game constants for LifeQuest.

Quest cadences, tracking kinds, reward tables and level rules live here.
Import from this module instead of hardcoding values in handlers.
"""

from dataclasses import dataclass, field
from enum import Enum


class QuestType(str, Enum):
    """Quest category bucket, which is also its reset cadence."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TrackingKind(str, Enum):
    """How progress on a quest is measured."""

    UNIT = "unit"
    STEPS = "steps"
    TIME = "time"
    CALORIES = "calories"
    MILLILITERS = "milliliters"
    PAGES = "pages"


QUEST_TYPE_ORDER: tuple[QuestType, ...] = (
    QuestType.DAILY,
    QuestType.WEEKLY,
    QuestType.MONTHLY,
)

# ------------------------------------------------------------------ #
# Tracking
# ------------------------------------------------------------------ #
TRACKING_UNITS: dict[TrackingKind, str] = {
    TrackingKind.UNIT: "times",
    TrackingKind.STEPS: "steps",
    TrackingKind.TIME: "minutes",
    TrackingKind.CALORIES: "kcal",
    TrackingKind.MILLILITERS: "ml",
    TrackingKind.PAGES: "pages",
}

# Kind names written by older clients
LEGACY_TRACKING_KINDS: dict[str, TrackingKind] = {
    "drink": TrackingKind.MILLILITERS,
    "walk": TrackingKind.STEPS,
    "eat": TrackingKind.CALORIES,
    "page": TrackingKind.PAGES,
}

# Kinds whose progress is entered as an arbitrary amount instead of +1
MEASURED_KINDS: frozenset[TrackingKind] = frozenset(TRACKING_UNITS) - {TrackingKind.UNIT}

# ------------------------------------------------------------------ #
# Rewards
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class RewardTable:
    """Versioned coin rewards per quest cadence.

    Quests copy their reward out of the active table when they are created,
    so swapping tables never changes quests that already exist.
    """

    version: int
    coins: dict[QuestType, int] = field(default_factory=dict)

    def coins_for(self, quest_type: QuestType) -> int:
        return self.coins[quest_type]


# Version 1 paid experience points as well and had a yearly cadence (500 coins).
# Both were retired; only the coin amounts for the surviving cadences carried over.
REWARD_TABLE_V2 = RewardTable(
    version=2,
    coins={
        QuestType.DAILY: 5,
        QuestType.WEEKLY: 25,
        QuestType.MONTHLY: 100,
    },
)

DEFAULT_REWARD_TABLE = REWARD_TABLE_V2

# ------------------------------------------------------------------ #
# Levels
# ------------------------------------------------------------------ #
STARTING_LEVEL: int = 1

# Cadences that carry a level counter and a completion log
LEVELED_TYPES: frozenset[QuestType] = frozenset({QuestType.DAILY, QuestType.WEEKLY})
