"""Formatting utilities for display."""

from datetime import datetime, timedelta

from lifequest.core.constants import TRACKING_UNITS, QuestType, TrackingKind
from lifequest.core.models import Quest

# Kinds shown with thousands separators
_GROUPED_KINDS = {TrackingKind.STEPS, TrackingKind.CALORIES}


def format_number(value: float) -> str:
    """Drop a trailing ``.0`` and keep at most two decimals."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def format_amount(kind: TrackingKind, amount: float) -> str:
    """Format a progress amount for its tracking kind.

    Args:
        kind: How the quest is tracked
        amount: The raw amount

    Returns:
        ``2.5L`` for a liter or more of water, ``10,000`` for steps and
        calories, the plain number otherwise
    """
    if kind == TrackingKind.MILLILITERS and amount >= 1000:
        return f"{amount / 1000:.1f}L"
    if kind in _GROUPED_KINDS:
        return f"{amount:,.0f}" if float(amount).is_integer() else f"{amount:,.2f}"
    return format_number(amount)


def format_progress(quest: Quest) -> str:
    """``current/target unit`` for a quest."""
    current = format_amount(quest.tracking_kind, quest.current_amount)
    target = format_amount(quest.tracking_kind, quest.target_amount)
    if target.endswith("L") and quest.tracking_kind == TrackingKind.MILLILITERS:
        return f"{current}/{target}"
    return f"{current}/{target} {TRACKING_UNITS[quest.tracking_kind]}"


def progress_bar(current: float, target: float, width: int = 8) -> str:
    """Generate a small progress bar."""
    ratio = min(current / target, 1.0) if target > 0 else 0
    filled = int(ratio * width)
    empty = width - filled
    return "█" * filled + "░" * empty


def format_coins(amount: int) -> str:
    return f"{amount:,} 🪙"


def period_label(quest_type: QuestType, now: datetime) -> str:
    """Human label of the current cycle, e.g. ``Oct 19 - Oct 25`` for a week."""
    if quest_type == QuestType.WEEKLY:
        monday = now - timedelta(days=now.weekday())
        sunday = monday + timedelta(days=6)
        return f"{monday:%b} {monday.day} - {sunday:%b} {sunday.day}"
    if quest_type == QuestType.MONTHLY:
        return f"{now:%B %Y}"
    return f"{now.day} {now:%B}, {now:%A}, {now.year}"
