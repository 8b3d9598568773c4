"""Quest and reward engine.

Quest CRUD, progress, completion, level-ups, resets and purchases.

The engine owns a single ``GameState``. Every mutating operation works on a
private deep copy and commits it with one reference swap, so a reader never
observes a half-applied transaction and a failed operation leaves the
committed state untouched. Listeners are told about each commit; the sync
layer uses that to schedule saves.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from lifequest.core.clock import Clock
from lifequest.core.constants import (
    DEFAULT_REWARD_TABLE,
    LEVELED_TYPES,
    QUEST_TYPE_ORDER,
    QuestType,
    RewardTable,
    TrackingKind,
)
from lifequest.core.errors import InsufficientFundsError, NotFoundError, ValidationError
from lifequest.core.models import (
    GameState,
    Purchase,
    Quest,
    Reward,
    from_snapshot,
    to_snapshot,
)
from lifequest.core.periods import period_id, same_period
from lifequest.logging import get_logger

logger = get_logger(__name__)

StateListener = Callable[[GameState], None]

# cadence -> (level field, last level-up cycle field, completion log field)
_LEVEL_FIELDS: dict[QuestType, tuple[str, str, str]] = {
    QuestType.DAILY: ("daily_level", "last_daily_level_up_date", "completed_days"),
    QuestType.WEEKLY: ("weekly_level", "last_weekly_level_up_date", "completed_weeks"),
}

_RESET_FIELDS: dict[QuestType, str] = {
    QuestType.DAILY: "last_daily_reset_date",
    QuestType.WEEKLY: "last_weekly_reset_date",
    QuestType.MONTHLY: "last_monthly_reset_date",
}

_COMPLETION_COUNTERS: dict[QuestType, str] = {
    QuestType.DAILY: "total_daily_quests_completed",
    QuestType.WEEKLY: "total_weekly_quests_completed",
    QuestType.MONTHLY: "total_monthly_quests_completed",
}


@dataclass
class CompletionResult:
    """Outcome of a completion transaction."""

    quest: Quest
    coins_awarded: int
    leveled_up: QuestType | None = None
    new_level: int | None = None


# ──────────────────────────────────────────────
# Input validation
# ──────────────────────────────────────────────

def _quest_type(value: Any) -> QuestType:
    try:
        return QuestType(value)
    except ValueError:
        raise ValidationError(f"Unknown quest type: {value}", "type", value) from None


def _tracking_kind(value: Any) -> TrackingKind:
    try:
        return TrackingKind(value)
    except ValueError:
        raise ValidationError(f"Unknown tracking kind: {value}", "tracking_kind", value) from None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _positive(value: Any, field: str) -> float:
    if not _is_number(value) or value <= 0:
        raise ValidationError(f"{field} must be a positive number", field, value)
    return value


def _non_negative(value: Any, field: str) -> float:
    if not _is_number(value) or value < 0:
        raise ValidationError(f"{field} must not be negative", field, value)
    return value


def _text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must not be empty", field, value)
    return value.strip()


def _find(state: GameState, quest_type: QuestType, quest_id: str) -> Quest | None:
    for quest in state.quests[quest_type]:
        if quest.id == quest_id:
            return quest
    return None


class QuestEngine:
    """Owns the game state and every operation that changes it."""

    def __init__(
        self,
        clock: Clock,
        state: GameState | None = None,
        reward_table: RewardTable = DEFAULT_REWARD_TABLE,
    ) -> None:
        self.clock = clock
        self.reward_table = reward_table
        self._state = state if state is not None else GameState()
        self._listeners: list[StateListener] = []

    # ──────────────────────────────────────────────
    # State access
    # ──────────────────────────────────────────────

    @property
    def state(self) -> GameState:
        """The committed state. Treat as read-only."""
        return self._state

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` after every commit. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error("State listener failed", listener=repr(listener), error=str(e))

    @contextmanager
    def _transaction(self) -> Iterator[GameState]:
        working = self._state.model_copy(deep=True)
        yield working
        self._state = working
        self._notify()

    def snapshot(self) -> dict[str, Any]:
        """Serializable copy of the full state."""
        return to_snapshot(self._state)

    def replace_state(self, snapshot: Mapping[str, Any] | GameState) -> GameState:
        """Replace the whole state, as when a snapshot is loaded or synced in.

        Raises ``pydantic.ValidationError`` if the document cannot be read.
        """
        state = snapshot if isinstance(snapshot, GameState) else from_snapshot(snapshot)
        self._state = state
        self._notify()
        return state

    # ──────────────────────────────────────────────
    # Quest CRUD
    # ──────────────────────────────────────────────

    def quests(self, quest_type: QuestType | str) -> list[Quest]:
        return list(self._state.quests[_quest_type(quest_type)])

    def get_quest(self, quest_type: QuestType | str, quest_id: str) -> Quest:
        quest = _find(self._state, _quest_type(quest_type), quest_id)
        if quest is None:
            raise NotFoundError("quest", quest_id)
        return quest

    def create_quest(
        self,
        quest_type: QuestType | str,
        title: str,
        tracking_kind: TrackingKind | str,
        target_amount: float,
        description: str = "",
    ) -> Quest:
        """Append a new quest with the active reward table's payout."""
        quest_type = _quest_type(quest_type)
        quest = Quest(
            quest_type=quest_type,
            title=_text(title, "title"),
            description=(description or "").strip(),
            tracking_kind=_tracking_kind(tracking_kind),
            target_amount=_positive(target_amount, "target_amount"),
            current_amount=0,
            completed=False,
            created_at=self.clock.now(),
            reward=Reward(coins=self.reward_table.coins_for(quest_type)),
        )

        with self._transaction() as working:
            working.quests[quest_type].append(quest)

        logger.info(
            "Quest created",
            quest_id=quest.id,
            quest_type=quest_type.value,
            tracking_kind=quest.tracking_kind.value,
            target=quest.target_amount,
            reward_coins=quest.reward.coins,
        )
        return quest

    def update_quest(
        self,
        quest_type: QuestType | str,
        quest_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        tracking_kind: TrackingKind | str | None = None,
        target_amount: float | None = None,
        current_amount: float | None = None,
    ) -> Quest | None:
        """Apply a partial edit. Unknown ids are ignored.

        An edit to the target or current amount that leaves
        ``current_amount < target_amount`` un-completes the quest. Coins,
        counters and levels already granted stay granted, and an edit never
        completes a quest or pays a reward.
        """
        quest_type = _quest_type(quest_type)
        patch: dict[str, Any] = {}
        if title is not None:
            patch["title"] = _text(title, "title")
        if description is not None:
            patch["description"] = description.strip()
        if tracking_kind is not None:
            patch["tracking_kind"] = _tracking_kind(tracking_kind)
        if target_amount is not None:
            patch["target_amount"] = _positive(target_amount, "target_amount")
        if current_amount is not None:
            patch["current_amount"] = _non_negative(current_amount, "current_amount")

        if _find(self._state, quest_type, quest_id) is None:
            return None

        with self._transaction() as working:
            quest = _find(working, quest_type, quest_id)
            for field, value in patch.items():
                setattr(quest, field, value)

            amounts_edited = "target_amount" in patch or "current_amount" in patch
            if amounts_edited and quest.completed and quest.current_amount < quest.target_amount:
                quest.completed = False
                quest.completed_at = None
                logger.info(
                    "Quest un-completed by edit",
                    quest_id=quest_id,
                    quest_type=quest_type.value,
                    reward_kept=quest.reward.coins,
                )

        return quest

    def delete_quest(self, quest_type: QuestType | str, quest_id: str) -> bool:
        """Remove a quest. Returns False when it did not exist."""
        quest_type = _quest_type(quest_type)
        if _find(self._state, quest_type, quest_id) is None:
            return False

        with self._transaction() as working:
            working.quests[quest_type] = [q for q in working.quests[quest_type] if q.id != quest_id]

        logger.info("Quest deleted", quest_id=quest_id, quest_type=quest_type.value)
        return True

    # ──────────────────────────────────────────────
    # Progress & completion
    # ──────────────────────────────────────────────

    def add_progress(
        self, quest_type: QuestType | str, quest_id: str, amount: float
    ) -> CompletionResult | None:
        """Add ``amount`` to a quest, completing it once the target is reached.

        Returns the completion result if this call completed the quest.
        Completed and unknown quests are left alone.
        """
        quest_type = _quest_type(quest_type)
        amount = _positive(amount, "amount")

        existing = _find(self._state, quest_type, quest_id)
        if existing is None or existing.completed:
            return None

        result: CompletionResult | None = None
        with self._transaction() as working:
            quest = _find(working, quest_type, quest_id)
            quest.current_amount += amount
            if quest.current_amount >= quest.target_amount:
                result = self._complete(working, quest)

        if result is None:
            logger.debug(
                "Quest progress",
                quest_id=quest_id,
                current=existing.current_amount + amount,
                target=existing.target_amount,
            )
        return result

    def complete_quest(self, quest_type: QuestType | str, quest_id: str) -> CompletionResult | None:
        """Complete a quest directly, leaving its current amount as-is."""
        quest_type = _quest_type(quest_type)

        existing = _find(self._state, quest_type, quest_id)
        if existing is None or existing.completed:
            return None

        with self._transaction() as working:
            result = self._complete(working, _find(working, quest_type, quest_id))
        return result

    def _complete(self, working: GameState, quest: Quest) -> CompletionResult:
        """Completion transaction; runs inside an open transaction."""
        now = self.clock.now()
        quest.completed = True
        quest.completed_at = now

        coins = quest.reward.coins
        working.coins += coins
        working.total_earned += coins
        working.total_quests_completed += 1
        counter = _COMPLETION_COUNTERS[quest.quest_type]
        setattr(working, counter, getattr(working, counter) + 1)

        result = CompletionResult(quest=quest, coins_awarded=coins)
        if quest.quest_type in LEVELED_TYPES:
            self._maybe_level_up(working, quest.quest_type, now, result)

        logger.info(
            "Quest completed",
            quest_id=quest.id,
            quest_type=quest.quest_type.value,
            coins=coins,
            balance=working.coins,
            leveled_up=result.leveled_up.value if result.leveled_up else None,
        )
        return result

    def _maybe_level_up(
        self, working: GameState, quest_type: QuestType, now: datetime, result: CompletionResult
    ) -> None:
        bucket = working.quests[quest_type]
        if not bucket or not all(q.completed for q in bucket):
            return

        level_field, last_field, log_field = _LEVEL_FIELDS[quest_type]
        cycle = period_id(self.clock, quest_type, now)
        if getattr(working, last_field) == cycle:
            return

        new_level = getattr(working, level_field) + 1
        setattr(working, level_field, new_level)
        setattr(working, last_field, cycle)
        completed_log: list[str] = getattr(working, log_field)
        if cycle not in completed_log:
            completed_log.append(cycle)

        result.leveled_up = quest_type
        result.new_level = new_level

    # ──────────────────────────────────────────────
    # Resets
    # ──────────────────────────────────────────────

    def needs_reset(self, quest_type: QuestType | str, now: datetime | None = None) -> bool:
        """True unless the last reset of this cadence falls in the current cycle."""
        quest_type = _quest_type(quest_type)
        last = getattr(self._state, _RESET_FIELDS[quest_type])
        return not same_period(self.clock, quest_type, last, now or self.clock.now())

    def needs_refresh(self) -> bool:
        """Whether any cadence has crossed a boundary since its last reset."""
        now = self.clock.now()
        return any(self.needs_reset(quest_type, now) for quest_type in QUEST_TYPE_ORDER)

    def reset(self, quest_type: QuestType | str) -> bool:
        """Clear progress on every quest of a cadence once per cycle.

        Returns True if a reset happened. A missing or unreadable last-reset
        timestamp always counts as a new cycle.
        """
        quest_type = _quest_type(quest_type)
        now = self.clock.now()
        if not self.needs_reset(quest_type, now):
            return False

        with self._transaction() as working:
            for quest in working.quests[quest_type]:
                quest.completed = False
                quest.current_amount = 0
                quest.completed_at = None
            setattr(working, _RESET_FIELDS[quest_type], now)

        logger.info(
            "Quests reset",
            quest_type=quest_type.value,
            cycle=period_id(self.clock, quest_type, now),
            quests=len(self._state.quests[quest_type]),
        )
        return True

    def reset_daily(self) -> bool:
        return self.reset(QuestType.DAILY)

    def reset_weekly(self) -> bool:
        return self.reset(QuestType.WEEKLY)

    def reset_monthly(self) -> bool:
        return self.reset(QuestType.MONTHLY)

    def run_resets(self) -> list[QuestType]:
        """Run every cadence's reset; returns the cadences that reset."""
        return [quest_type for quest_type in QUEST_TYPE_ORDER if self.reset(quest_type)]

    # ──────────────────────────────────────────────
    # Purchases
    # ──────────────────────────────────────────────

    @property
    def purchases(self) -> list[Purchase]:
        return list(self._state.purchases)

    def record_purchase(
        self,
        name: str,
        coin_cost: int,
        real_cost: float | None = None,
        description: str = "",
    ) -> Purchase:
        """Pay for a purchase and log it in one step."""
        name = _text(name, "name")
        if not isinstance(coin_cost, int) or isinstance(coin_cost, bool) or coin_cost <= 0:
            raise ValidationError("coin_cost must be a positive whole number", "coin_cost", coin_cost)
        if real_cost is not None:
            real_cost = _positive(real_cost, "real_cost")

        balance = self._state.coins
        if balance < coin_cost:
            raise InsufficientFundsError(balance=balance, cost=coin_cost)

        purchase = Purchase(
            name=name,
            description=(description or "").strip(),
            coin_cost=coin_cost,
            real_cost=real_cost,
            purchased_at=self.clock.now(),
        )
        with self._transaction() as working:
            working.coins -= coin_cost
            working.purchases.append(purchase)

        logger.info(
            "Purchase recorded",
            purchase_id=purchase.id,
            name=name,
            coin_cost=coin_cost,
            balance=self._state.coins,
        )
        return purchase

    def delete_purchase(self, purchase_id: str) -> bool:
        """Remove a purchase from the log. Coins are not refunded."""
        if not any(p.id == purchase_id for p in self._state.purchases):
            return False

        with self._transaction() as working:
            working.purchases = [p for p in working.purchases if p.id != purchase_id]

        logger.info("Purchase deleted", purchase_id=purchase_id)
        return True
