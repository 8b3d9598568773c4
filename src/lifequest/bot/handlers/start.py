"""Start and welcome handlers."""

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from lifequest.core.engine import QuestEngine
from lifequest.utils.formatting import format_coins

router = Router(name="start")

WELCOME_NEW_USER = """
<b>Welcome to LifeQuest!</b>

Turn your habits into quests and earn coins for every one you finish.

<b>Quick Start:</b>
1. Add a quest: <code>/addquest daily ml 2000 Drink water</code>
2. Log progress: <code>/progress daily 1 500</code>
3. Spend your coins on real rewards with /buy

Daily quests reset at midnight, weekly ones on Monday and monthly ones on the 1st.
Use /help to see all commands.
"""

RETURNING_MESSAGE = """
<b>Welcome back!</b>

Daily level: <b>{daily_level}</b> · Weekly level: <b>{weekly_level}</b>
Balance: <b>{balance}</b>
Quests in progress: <b>{open_quests}</b>

Use /quests to see today's list or /help for commands.
"""


@router.message(CommandStart())
async def cmd_start(message: Message, engine: QuestEngine) -> None:
    """Handle /start command."""
    state = engine.state
    quests = state.all_quests()

    if not quests and not state.total_quests_completed:
        await message.answer(WELCOME_NEW_USER)
        return

    await message.answer(
        RETURNING_MESSAGE.format(
            daily_level=state.daily_level,
            weekly_level=state.weekly_level,
            balance=format_coins(state.coins),
            open_quests=sum(1 for quest in quests if not quest.completed),
        )
    )


@router.message(Command("ping"))
async def cmd_ping(message: Message) -> None:
    """Simple ping command to test bot responsiveness."""
    await message.answer("Pong!")
