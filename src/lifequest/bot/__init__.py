"""Bot package initialization."""

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from lifequest.core.engine import QuestEngine


def create_bot(token: str) -> Bot:
    """Create and configure the Telegram bot."""
    return Bot(
        token=token,
        default=DefaultBotProperties(
            parse_mode=ParseMode.HTML,
            link_preview_is_disabled=True,
        ),
    )


def create_dispatcher(engine: QuestEngine) -> Dispatcher:
    """Create the dispatcher with handlers and the engine middleware."""
    dp = Dispatcher()

    from lifequest.bot.handlers import register_all_handlers

    register_all_handlers(dp)

    from lifequest.bot.middlewares import register_all_middlewares

    register_all_middlewares(dp, engine)

    return dp


__all__ = ["create_bot", "create_dispatcher"]
