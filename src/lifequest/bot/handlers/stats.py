"""Stats and calendar handlers."""

import re

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from lifequest.core.constants import QUEST_TYPE_ORDER
from lifequest.core.engine import QuestEngine
from lifequest.core.stats import build_stats, completed_days_in_month, month_calendar
from lifequest.utils.formatting import format_coins, progress_bar

router = Router(name="stats")

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")
WEEKDAY_HEADER = "Su Mo Tu We Th Fr Sa"


@router.message(Command("stats", "profile"))
async def cmd_stats(message: Message, engine: QuestEngine) -> None:
    """Handle /stats command."""
    stats = build_stats(engine.state, engine.clock)

    by_type = "\n".join(
        f"  {quest_type.value.title()}: {stats.completions_by_type[quest_type]}"
        for quest_type in QUEST_TYPE_ORDER
    )
    days_bar = progress_bar(stats.completed_days_this_month, stats.days_in_month)

    text = (
        "<b>📊 Your Stats</b>\n\n"
        f"<b>Daily level:</b> {stats.daily_level}\n"
        f"<b>Weekly level:</b> {stats.weekly_level}\n"
        f"<b>Streak:</b> {stats.current_streak} day(s)\n\n"
        f"<b>Balance:</b> {format_coins(stats.coins)}\n"
        f"<b>Earned:</b> {format_coins(stats.total_earned)}\n"
        f"<b>Spent:</b> {format_coins(stats.total_spent)}\n\n"
        f"<b>Quests completed:</b> {stats.total_quests_completed}\n{by_type}\n\n"
        f"<b>This cycle:</b> {stats.completed_quests}/{stats.active_quests} "
        f"({stats.completion_rate}%)\n"
        f"<b>Days this month:</b> [{days_bar}] "
        f"{stats.completed_days_this_month}/{stats.days_in_month}\n"
        f"<b>Weeks this month:</b> {stats.completed_weeks_this_month}/{stats.weeks_in_month}"
    )
    await message.answer(text)


def render_calendar(completed_days: list[str], year: int, month: int) -> str:
    rows = [WEEKDAY_HEADER]
    for week in month_calendar(completed_days, year, month):
        cells = []
        for cell in week:
            if cell.day is None:
                cells.append("  ")
            elif cell.completed:
                cells.append(" ✓")
            else:
                cells.append(f"{cell.day:>2}")
        rows.append(" ".join(cells))
    return "\n".join(rows)


@router.message(Command("calendar", "cal"))
async def cmd_calendar(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /calendar [YYYY-MM]. Defaults to the current month."""
    year, month, _ = engine.clock.local_date_parts(engine.clock.now())
    if command.args:
        match = MONTH_PATTERN.match(command.args.strip())
        if not match or int(match.group(1)) < 1 or not 1 <= int(match.group(2)) <= 12:
            await message.answer("Usage: /calendar [YYYY-MM]")
            return
        year, month = int(match.group(1)), int(match.group(2))

    state = engine.state
    done = completed_days_in_month(state.completed_days, year, month)

    await message.answer(
        f"<b>📅 {year:04d}-{month:02d}</b> · {done} day(s) with every daily quest done\n"
        f"<pre>{render_calendar(state.completed_days, year, month)}</pre>"
    )
