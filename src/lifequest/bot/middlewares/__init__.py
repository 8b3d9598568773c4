"""Middleware registration and implementations."""

from aiogram import Dispatcher

from lifequest.bot.middlewares.engine import EngineMiddleware
from lifequest.core.engine import QuestEngine


def register_all_middlewares(dp: Dispatcher, engine: QuestEngine) -> None:
    """Register all middlewares with the dispatcher."""
    dp.message.middleware(EngineMiddleware(engine))
    dp.callback_query.middleware(EngineMiddleware(engine))


__all__ = ["register_all_middlewares"]
