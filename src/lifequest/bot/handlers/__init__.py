"""Handler registration."""

from aiogram import Dispatcher

from lifequest.bot.handlers import help_cmd, purchases, quests, start, stats


def register_all_handlers(dp: Dispatcher) -> None:
    """Register all handlers with the dispatcher."""
    dp.include_router(start.router)
    dp.include_router(help_cmd.router)

    dp.include_router(quests.router)
    dp.include_router(purchases.router)
    dp.include_router(stats.router)


__all__ = ["register_all_handlers"]
