"""Help command handlers with category-based inline keyboard."""

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

router = Router(name="help")


# ---------------------------------------------------------------------------
# Category definitions
# ---------------------------------------------------------------------------

HELP_CATEGORIES = {
    "start": {
        "emoji": "🏠",
        "title": "Getting Started",
        "text": (
            "<b>Getting Started</b>\n\n"
            "/start - Welcome and current levels\n"
            "/help - Show help menu\n"
            "/help [command] - Detailed help for a command"
        ),
    },
    "quests": {
        "emoji": "📋",
        "title": "Quests",
        "text": (
            "<b>Quests</b>\n\n"
            "/quests [type] - List quests\n"
            "/addquest [type] [kind] [target] [title] - New quest\n"
            "/progress [type] [#] [amount] - Log progress\n"
            "/done [type] [#] - Complete a quest\n"
            "/editquest [type] [#] [field] [value] - Edit a quest\n"
            "/delquest [type] [#] - Delete a quest\n\n"
            "<i>Types: daily, weekly, monthly (or d, w, m)</i>\n"
            "<i>Kinds: unit, steps, time, calories, ml, pages</i>"
        ),
    },
    "shop": {
        "emoji": "🛍",
        "title": "Coins & Rewards",
        "text": (
            "<b>Coins & Rewards</b>\n\n"
            "/balance - Check your coins\n"
            "/buy [coins] [name] | [real cost] - Buy a reward\n"
            "/purchases - Purchase history\n"
            "/delpurchase [#] - Remove a purchase (no refund)\n\n"
            "<i>Daily quests pay 5, weekly 25, monthly 100 coins.</i>"
        ),
    },
    "stats": {
        "emoji": "📊",
        "title": "Stats",
        "text": (
            "<b>Stats</b>\n\n"
            "/stats - Levels, totals and streak\n"
            "/calendar [YYYY-MM] - Days with every daily quest done"
        ),
    },
}

CATEGORY_ORDER = ["start", "quests", "shop", "stats"]


# ---------------------------------------------------------------------------
# Detailed per-command help
# ---------------------------------------------------------------------------

COMMAND_HELP = {
    "addquest": (
        "<b>/addquest [type] [kind] [target] [title]</b>\n\n"
        "Create a quest for the current cycle.\n"
        "The reward is set by the type: daily 5, weekly 25, monthly 100.\n\n"
        "<b>Examples:</b>\n"
        "<code>/addquest daily ml 2000 Drink water</code>\n"
        "<code>/addquest weekly unit 3 Go to the gym</code>"
    ),
    "progress": (
        "<b>/progress [type] [#] [amount]</b>\n"
        "Also: /p\n\n"
        "Add progress to a quest. The amount defaults to 1 for unit quests.\n"
        "Reaching the target completes the quest and pays its reward.\n\n"
        "<b>Example:</b> /progress daily 1 500"
    ),
    "editquest": (
        "<b>/editquest [type] [#] [field] [value]</b>\n\n"
        "Fields: title, description, kind, target, current.\n"
        "Lowering a completed quest below its target reopens it; "
        "coins already earned are kept.\n\n"
        "<b>Example:</b> /editquest daily 1 target 2500"
    ),
    "buy": (
        "<b>/buy [coins] [name] | [real cost]</b>\n\n"
        "Spend coins on a reward and log it. The real cost is optional.\n\n"
        "<b>Example:</b> <code>/buy 50 New shirt | 19.99</code>"
    ),
    "calendar": (
        "<b>/calendar [YYYY-MM]</b>\n"
        "Also: /cal\n\n"
        "Month grid with a ✓ on every day all daily quests were done."
    ),
}


# ---------------------------------------------------------------------------
# Build the main help keyboard
# ---------------------------------------------------------------------------

def build_help_keyboard() -> InlineKeyboardBuilder:
    """Build the category selection keyboard."""
    builder = InlineKeyboardBuilder()
    for key in CATEGORY_ORDER:
        cat = HELP_CATEGORIES[key]
        builder.button(
            text=f"{cat['emoji']} {cat['title']}",
            callback_data=f"help:{key}",
        )
    builder.adjust(2)
    return builder


HELP_OVERVIEW = (
    "<b>LifeQuest Help</b>\n\n"
    "Tap a category below to see its commands.\n"
    "Use <code>/help [command]</code> for detailed help on any command.\n\n"
    "<i>Quest numbers are the positions shown by /quests.</i>"
)


def _back_keyboard() -> InlineKeyboardBuilder:
    """Build a keyboard with just a Back button."""
    builder = InlineKeyboardBuilder()
    builder.button(text="◀️ Back to categories", callback_data="help:back")
    return builder


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

@router.message(Command("help"))
async def cmd_help(message: Message, command: CommandObject) -> None:
    """Handle /help command: show category keyboard or detailed help."""
    if command.args:
        topic = command.args.split()[0].lower().lstrip("/")
        if topic in COMMAND_HELP:
            await message.answer(COMMAND_HELP[topic])
            return
        if topic in HELP_CATEGORIES:
            await message.answer(
                HELP_CATEGORIES[topic]["text"],
                reply_markup=_back_keyboard().as_markup(),
            )
            return

    await message.answer(HELP_OVERVIEW, reply_markup=build_help_keyboard().as_markup())


@router.callback_query(F.data.startswith("help:"))
async def callback_help(callback: CallbackQuery) -> None:
    """Handle help category selection."""
    key = (callback.data or "").split(":", 1)[-1]

    if key == "back":
        text, keyboard = HELP_OVERVIEW, build_help_keyboard()
    elif key in HELP_CATEGORIES:
        text, keyboard = HELP_CATEGORIES[key]["text"], _back_keyboard()
    else:
        await callback.answer("Unknown category")
        return

    if callback.message is not None:
        await callback.message.edit_text(text, reply_markup=keyboard.as_markup())
    await callback.answer()
