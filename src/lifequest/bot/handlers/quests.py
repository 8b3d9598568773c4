"""Quest handlers: list, add, progress, complete, edit and delete."""

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder
from aiogram.utils.text_decorations import html_decoration as hd

from lifequest.bot.parsing import (
    parse_index,
    parse_number,
    parse_quest_type,
    parse_tracking_kind,
    quest_at,
    split_args,
)
from lifequest.core.constants import MEASURED_KINDS, QUEST_TYPE_ORDER, TRACKING_UNITS, QuestType
from lifequest.core.engine import CompletionResult, QuestEngine
from lifequest.core.errors import LifeQuestError, ValidationError
from lifequest.core.models import Quest
from lifequest.utils.formatting import format_coins, format_progress, period_label, progress_bar

router = Router(name="quests")

ADD_USAGE = (
    "Usage: /addquest [type] [kind] [target] [title]\n"
    "Example: <code>/addquest daily ml 2000 Drink water</code>"
)
EDIT_FIELDS = ("title", "description", "kind", "target", "current")


def _format_quest_line(quest: Quest, index: int) -> str:
    """Format a single quest line."""
    title = hd.quote(quest.title)
    if quest.completed:
        return f"  {index}. ✅ <s>{title}</s> · +{format_coins(quest.reward.coins)}"
    bar = progress_bar(quest.current_amount, quest.target_amount)
    return (
        f"  {index}. {title}\n"
        f"       [{bar}] {format_progress(quest)} · {format_coins(quest.reward.coins)}"
    )


def _quest_keyboard(quest_type: QuestType, quests: list[Quest]) -> InlineKeyboardBuilder | None:
    """Quick buttons: +1 for unit quests, done for measured ones."""
    builder = InlineKeyboardBuilder()
    count = 0
    for index, quest in enumerate(quests, 1):
        if quest.completed:
            continue
        action, label = ("done", "✅") if quest.tracking_kind in MEASURED_KINDS else ("inc", "+1")
        builder.button(
            text=f"{label} #{index}",
            callback_data=f"quest:{action}:{quest_type.value}:{quest.id}",
        )
        count += 1
    if not count:
        return None
    builder.adjust(4)
    return builder


def _completion_text(result: CompletionResult, balance: int) -> str:
    lines = [
        f"🎉 <b>{hd.quote(result.quest.title)}</b> complete! +{format_coins(result.coins_awarded)}",
        f"<b>Balance:</b> {format_coins(balance)}",
    ]
    if result.leveled_up is not None:
        lines.append(
            f"\n⭐ All {result.leveled_up.value} quests done · "
            f"{result.leveled_up.value} level {result.new_level}!"
        )
    return "\n".join(lines)


def render_quests(engine: QuestEngine, quest_types: list[QuestType]) -> str:
    now = engine.clock.localize(engine.clock.now())
    lines = ["<b>📋 Your Quests</b>"]

    for quest_type in quest_types:
        quests = engine.quests(quest_type)
        done = sum(1 for q in quests if q.completed)
        lines.append(
            f"\n<b>{quest_type.value.title()} Quests</b> · {period_label(quest_type, now)}"
            + (f" ({done}/{len(quests)})" if quests else "")
        )
        if not quests:
            lines.append(f"  <i>No {quest_type.value} quests yet. Add one with /addquest</i>")
            continue
        lines.extend(_format_quest_line(quest, i) for i, quest in enumerate(quests, 1))

    return "\n".join(lines)


@router.message(Command("quests", "quest", "q"))
async def cmd_quests(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /quests [type] to view quests."""
    args = split_args(command.args)
    try:
        quest_types = [parse_quest_type(args[0])] if args else list(QUEST_TYPE_ORDER)
    except LifeQuestError as e:
        await message.answer(e.message)
        return

    keyboard = None
    if len(quest_types) == 1:
        keyboard = _quest_keyboard(quest_types[0], engine.quests(quest_types[0]))

    await message.answer(
        render_quests(engine, quest_types),
        reply_markup=keyboard.as_markup() if keyboard else None,
    )


@router.message(Command("addquest"))
async def cmd_add_quest(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /addquest [type] [kind] [target] [title]."""
    args = split_args(command.args)
    if len(args) < 4:
        await message.answer(ADD_USAGE)
        return

    try:
        quest = engine.create_quest(
            quest_type=parse_quest_type(args[0]),
            tracking_kind=parse_tracking_kind(args[1]),
            target_amount=parse_number(args[2], "target"),
            title=" ".join(args[3:]),
        )
    except LifeQuestError as e:
        await message.answer(f"{e.message}\n\n{ADD_USAGE}")
        return

    await message.answer(
        f"✨ New {quest.quest_type.value} quest: <b>{hd.quote(quest.title)}</b>\n"
        f"Target: {format_progress(quest)} · reward {format_coins(quest.reward.coins)}"
    )


@router.message(Command("progress", "p"))
async def cmd_progress(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /progress [type] [#] [amount]. Amount defaults to 1 for unit quests."""
    args = split_args(command.args)
    if len(args) < 2:
        await message.answer("Usage: /progress [type] [#] [amount]")
        return

    try:
        quest_type = parse_quest_type(args[0])
        quest = quest_at(engine, quest_type, parse_index(args[1]))
        if len(args) >= 3:
            amount = parse_number(args[2], "amount")
        elif quest.tracking_kind in MEASURED_KINDS:
            raise ValidationError(
                f"How many {TRACKING_UNITS[quest.tracking_kind]}? /progress {quest_type.value} {args[1]} [amount]"
            )
        else:
            amount = 1
        if quest.completed:
            await message.answer(f"<b>{hd.quote(quest.title)}</b> is already complete for this cycle.")
            return
        result = engine.add_progress(quest_type, quest.id, amount)
    except LifeQuestError as e:
        await message.answer(e.message)
        return

    if result is not None:
        await message.answer(_completion_text(result, engine.state.coins))
        return

    updated = engine.get_quest(quest_type, quest.id)
    bar = progress_bar(updated.current_amount, updated.target_amount)
    await message.answer(f"<b>{hd.quote(updated.title)}</b>\n[{bar}] {format_progress(updated)}")


@router.message(Command("done"))
async def cmd_done(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /done [type] [#] to complete a quest outright."""
    args = split_args(command.args)
    if len(args) < 2:
        await message.answer("Usage: /done [type] [#]")
        return

    try:
        quest_type = parse_quest_type(args[0])
        quest = quest_at(engine, quest_type, parse_index(args[1]))
    except LifeQuestError as e:
        await message.answer(e.message)
        return

    result = engine.complete_quest(quest_type, quest.id)
    if result is None:
        await message.answer(f"<b>{hd.quote(quest.title)}</b> is already complete for this cycle.")
        return
    await message.answer(_completion_text(result, engine.state.coins))


@router.message(Command("editquest"))
async def cmd_edit_quest(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /editquest [type] [#] [field] [value]."""
    args = split_args(command.args)
    if len(args) < 4 or args[2].lower() not in EDIT_FIELDS:
        await message.answer(
            "Usage: /editquest [type] [#] [field] [value]\n"
            f"Fields: {', '.join(EDIT_FIELDS)}"
        )
        return

    field, raw = args[2].lower(), " ".join(args[3:])
    try:
        quest_type = parse_quest_type(args[0])
        quest = quest_at(engine, quest_type, parse_index(args[1]))
        patch = {
            "title": lambda: {"title": raw},
            "description": lambda: {"description": raw},
            "kind": lambda: {"tracking_kind": parse_tracking_kind(raw)},
            "target": lambda: {"target_amount": parse_number(raw, "target")},
            "current": lambda: {"current_amount": parse_number(raw, "current")},
        }[field]()
        updated = engine.update_quest(quest_type, quest.id, **patch)
    except LifeQuestError as e:
        await message.answer(e.message)
        return

    if updated is None:
        await message.answer("That quest no longer exists.")
        return

    note = ""
    if quest.completed and not updated.completed:
        note = "\n<i>Quest reopened; coins already earned are kept.</i>"
    await message.answer(f"✏️ Updated <b>{hd.quote(updated.title)}</b> · {format_progress(updated)}{note}")


@router.message(Command("delquest"))
async def cmd_delete_quest(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /delquest [type] [#]."""
    args = split_args(command.args)
    if len(args) < 2:
        await message.answer("Usage: /delquest [type] [#]")
        return

    try:
        quest_type = parse_quest_type(args[0])
        quest = quest_at(engine, quest_type, parse_index(args[1]))
    except LifeQuestError as e:
        await message.answer(e.message)
        return

    engine.delete_quest(quest_type, quest.id)
    await message.answer(f"🗑 Deleted <b>{hd.quote(quest.title)}</b>.")


@router.callback_query(F.data.startswith("quest:"))
async def callback_quest(callback: CallbackQuery, engine: QuestEngine) -> None:
    """Handle the quick +1 / done buttons under a quest list."""
    parts = (callback.data or "").split(":")
    if len(parts) != 4:
        await callback.answer()
        return

    _, action, raw_type, quest_id = parts
    try:
        quest_type = parse_quest_type(raw_type)
        if action == "inc":
            result = engine.add_progress(quest_type, quest_id, 1)
        else:
            result = engine.complete_quest(quest_type, quest_id)
    except LifeQuestError as e:
        await callback.answer(e.message, show_alert=True)
        return

    if result is not None:
        await callback.answer(f"+{result.coins_awarded} coins!")
    else:
        await callback.answer()

    if callback.message is not None:
        keyboard = _quest_keyboard(quest_type, engine.quests(quest_type))
        await callback.message.edit_text(
            render_quests(engine, [quest_type]),
            reply_markup=keyboard.as_markup() if keyboard else None,
        )
