"""Engine injection middleware."""

from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from lifequest.core.engine import QuestEngine


class EngineMiddleware(BaseMiddleware):
    """Middleware to provide the quest engine to handlers."""

    def __init__(self, engine: QuestEngine) -> None:
        self.engine = engine

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        """Inject the engine into handler data."""
        data["engine"] = self.engine
        return await handler(event, data)
