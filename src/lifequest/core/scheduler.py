"""Background tasks that keep quest resets on schedule.

The engine never schedules itself; this module calls its reset operations:
once on start, on a fixed interval, and in a safety check shortly after
local midnight that catches resets missed while the process was asleep.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from datetime import datetime, time, timedelta, timezone

from lifequest.core.constants import QuestType
from lifequest.core.engine import QuestEngine
from lifequest.logging import get_logger

logger = get_logger(__name__)

RefreshCallback = Callable[[list[QuestType]], Awaitable[None] | None]


class ResetScheduler:
    """Runs the engine's resets periodically and after midnight."""

    def __init__(
        self,
        engine: QuestEngine,
        interval_seconds: float = 60.0,
        midnight_grace_seconds: float = 5.0,
        on_refresh: RefreshCallback | None = None,
    ) -> None:
        self._engine = engine
        self._interval = interval_seconds
        self._grace = midnight_grace_seconds
        self._on_refresh = on_refresh
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> list[QuestType]:
        """Reset whatever is due now and start the background loops."""
        reset = self._engine.run_resets()
        if reset:
            logger.info("Startup reset", cadences=[q.value for q in reset])

        self._tasks = [
            asyncio.create_task(self._periodic_loop(), name="lifequest-reset-loop"),
            asyncio.create_task(self._midnight_loop(), name="lifequest-midnight-check"),
        ]
        return reset

    async def stop(self) -> None:
        """Cancel the loops and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def seconds_until_midnight(self) -> float:
        """Seconds from now until the next local midnight."""
        clock = self._engine.clock
        now = clock.localize(clock.now())
        midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
        delta = midnight.astimezone(timezone.utc) - now.astimezone(timezone.utc)
        return max(delta.total_seconds(), 0.0)

    async def check_missed_reset(self) -> list[QuestType]:
        """Correct a reset that should already have happened.

        Returns the cadences that were reset; the refresh callback runs only
        when there was something to correct.
        """
        if not self._engine.needs_refresh():
            return []

        reset = self._engine.run_resets()
        logger.warning("Corrected missed reset", cadences=[q.value for q in reset])
        if self._on_refresh is not None:
            result = self._on_refresh(reset)
            if inspect.isawaitable(result):
                await result
        return reset

    async def _periodic_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                reset = self._engine.run_resets()
                if reset:
                    logger.info("Scheduled reset", cadences=[q.value for q in reset])
            except Exception as e:
                logger.error("Error in reset loop", error=str(e))

    async def _midnight_loop(self) -> None:
        while True:
            await asyncio.sleep(self.seconds_until_midnight() + self._grace)
            try:
                await self.check_missed_reset()
            except Exception as e:
                logger.error("Error in midnight reset check", error=str(e))
