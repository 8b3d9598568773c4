"""Command argument parsing shared by the handlers.

Every parser raises ``ValidationError`` with a message fit to show the user.
"""

from lifequest.core.constants import LEGACY_TRACKING_KINDS, QuestType, TrackingKind
from lifequest.core.engine import QuestEngine
from lifequest.core.errors import NotFoundError, ValidationError
from lifequest.core.models import Purchase, Quest

QUEST_TYPE_ALIASES: dict[str, QuestType] = {
    "d": QuestType.DAILY,
    "day": QuestType.DAILY,
    "daily": QuestType.DAILY,
    "w": QuestType.WEEKLY,
    "week": QuestType.WEEKLY,
    "weekly": QuestType.WEEKLY,
    "m": QuestType.MONTHLY,
    "month": QuestType.MONTHLY,
    "monthly": QuestType.MONTHLY,
}

TRACKING_KIND_ALIASES: dict[str, TrackingKind] = {
    **{kind.value: kind for kind in TrackingKind},
    **LEGACY_TRACKING_KINDS,
    "times": TrackingKind.UNIT,
    "min": TrackingKind.TIME,
    "minutes": TrackingKind.TIME,
    "kcal": TrackingKind.CALORIES,
    "ml": TrackingKind.MILLILITERS,
}


def split_args(args: str | None) -> list[str]:
    return (args or "").split()


def parse_quest_type(token: str) -> QuestType:
    quest_type = QUEST_TYPE_ALIASES.get(token.lower())
    if quest_type is None:
        raise ValidationError(
            f"Unknown quest type '{token}'. Use daily, weekly or monthly.", "type", token
        )
    return quest_type


def parse_tracking_kind(token: str) -> TrackingKind:
    kind = TRACKING_KIND_ALIASES.get(token.lower())
    if kind is None:
        kinds = ", ".join(k.value for k in TrackingKind)
        raise ValidationError(f"Unknown tracking kind '{token}'. Use one of: {kinds}.", "tracking_kind", token)
    return kind


def parse_number(token: str, field: str) -> float:
    """Parse ``2000``, ``2,000`` or ``1.5``; integral values come back as int."""
    try:
        value = float(token.replace(",", ""))
    except ValueError:
        raise ValidationError(f"'{token}' is not a number", field, token) from None
    return int(value) if value.is_integer() else value


def parse_int(token: str, field: str) -> int:
    value = parse_number(token, field)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number", field, token)
    return value


def parse_index(token: str) -> int:
    """1-based list position."""
    index = parse_int(token.lstrip("#"), "number")
    if index < 1:
        raise ValidationError("Quest numbers start at 1", "number", token)
    return index


def quest_at(engine: QuestEngine, quest_type: QuestType, index: int) -> Quest:
    """The quest shown at position ``index`` of its list."""
    quests = engine.quests(quest_type)
    if index > len(quests):
        raise NotFoundError("quest", f"{quest_type.value} #{index}")
    return quests[index - 1]


def purchase_at(engine: QuestEngine, index: int) -> Purchase:
    purchases = engine.purchases
    if index > len(purchases):
        raise NotFoundError("purchase", f"#{index}")
    return purchases[index - 1]
