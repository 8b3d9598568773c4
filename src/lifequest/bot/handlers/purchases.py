"""Reward shop handlers: spend coins and review the purchase log."""

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd

from lifequest.bot.parsing import parse_index, parse_int, parse_number, purchase_at, split_args
from lifequest.core.engine import QuestEngine
from lifequest.core.errors import InsufficientFundsError, LifeQuestError
from lifequest.core.models import Purchase
from lifequest.utils.formatting import format_coins, format_number

router = Router(name="purchases")

BUY_USAGE = (
    "Usage: /buy [coins] [name] | [real cost]\n"
    "Example: <code>/buy 50 New shirt | 19.99</code>"
)


def _format_purchase(purchase: Purchase, index: int) -> str:
    line = f"  {index}. <b>{hd.quote(purchase.name)}</b> - {format_coins(purchase.coin_cost)}"
    if purchase.real_cost is not None:
        line += f" (${format_number(purchase.real_cost)})"
    if purchase.purchased_at is not None:
        line += f"\n       <i>{purchase.purchased_at:%b %d, %Y}</i>"
    return line


@router.message(Command("buy"))
async def cmd_buy(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /buy [coins] [name] | [real cost]."""
    raw, _, real = (command.args or "").partition("|")
    args = split_args(raw)
    if len(args) < 2:
        await message.answer(BUY_USAGE)
        return

    try:
        coin_cost = parse_int(args[0], "coins")
        real_cost = parse_number(real.strip(), "real cost") if real.strip() else None
        purchase = engine.record_purchase(" ".join(args[1:]), coin_cost, real_cost=real_cost)
    except InsufficientFundsError as e:
        await message.answer(
            f"❌ Not enough coins!\n"
            f"Need: {format_coins(e.details['cost'])}\n"
            f"Have: {format_coins(e.details['balance'])}"
        )
        return
    except LifeQuestError as e:
        await message.answer(f"{e.message}\n\n{BUY_USAGE}")
        return

    await message.answer(
        f"🛍 Bought <b>{hd.quote(purchase.name)}</b> for {format_coins(purchase.coin_cost)}\n"
        f"<b>Balance:</b> {format_coins(engine.state.coins)}"
    )


@router.message(Command("balance", "coins"))
async def cmd_balance(message: Message, engine: QuestEngine) -> None:
    """Handle /balance command."""
    state = engine.state
    await message.answer(
        f"<b>Balance:</b> {format_coins(state.coins)}\n"
        f"<b>Earned all time:</b> {format_coins(state.total_earned)}"
    )


@router.message(Command("purchases", "history"))
async def cmd_purchases(message: Message, engine: QuestEngine) -> None:
    """Handle /purchases command."""
    purchases = engine.purchases
    if not purchases:
        await message.answer("No purchases yet. Reward yourself with /buy")
        return

    spent = sum(p.coin_cost for p in purchases)
    lines = [f"<b>🛍 Purchases</b> ({len(purchases)})\n"]
    lines.extend(_format_purchase(p, i) for i, p in enumerate(purchases, 1))
    lines.append(f"\n<b>Total spent:</b> {format_coins(spent)}")
    await message.answer("\n".join(lines))


@router.message(Command("delpurchase"))
async def cmd_delete_purchase(message: Message, command: CommandObject, engine: QuestEngine) -> None:
    """Handle /delpurchase [#]. Coins are not refunded."""
    args = split_args(command.args)
    if not args:
        await message.answer("Usage: /delpurchase [#]")
        return

    try:
        purchase = purchase_at(engine, parse_index(args[0]))
    except LifeQuestError as e:
        await message.answer(e.message)
        return

    engine.delete_purchase(purchase.id)
    await message.answer(f"🗑 Removed <b>{hd.quote(purchase.name)}</b> from the log. Coins are not refunded.")
