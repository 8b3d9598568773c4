"""Main entry point for the LifeQuest bot."""

import asyncio
import sys

from redis.asyncio import Redis

from lifequest.bot import create_bot, create_dispatcher
from lifequest.config import settings
from lifequest.core.clock import SystemClock
from lifequest.core.engine import QuestEngine
from lifequest.core.scheduler import ResetScheduler
from lifequest.database import async_session_factory, close_db, init_db
from lifequest.logging import bind_installation, get_logger, setup_logging
from lifequest.storage import DatabaseSnapshotStore, RedisSnapshotStore, get_installation_id
from lifequest.sync import SnapshotSync

logger = get_logger(__name__)


async def main() -> None:
    """Main function to run the bot."""
    setup_logging()
    logger.info("Starting LifeQuest bot...")

    if not settings.bot_token:
        logger.error("No bot token configured, set LIFEQUEST_BOT_TOKEN")
        sys.exit(1)

    try:
        await init_db()
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        sys.exit(1)

    installation_id = get_installation_id(
        settings.installation_id_path, override=settings.installation_id
    )
    bind_installation(installation_id)
    redis = Redis.from_url(settings.redis_url) if settings.redis_url else None

    engine = QuestEngine(SystemClock(settings.tzinfo))
    sync = SnapshotSync(
        engine,
        local=DatabaseSnapshotStore(async_session_factory, installation_id),
        remote=RedisSnapshotStore(redis, installation_id) if redis is not None else None,
        debounce_seconds=settings.save_debounce_seconds,
    )
    scheduler = ResetScheduler(
        engine,
        interval_seconds=settings.reset_check_interval_seconds,
        midnight_grace_seconds=settings.midnight_grace_seconds,
        on_refresh=lambda _: sync.flush(),
    )

    bot = create_bot(settings.bot_token)
    dp = create_dispatcher(engine)

    try:
        await sync.start()
        await scheduler.start()

        bot_info = await bot.get_me()
        logger.info(
            "Bot started",
            username=bot_info.username,
            bot_id=bot_info.id,
            remote_sync=redis is not None,
        )

        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())

    except Exception as e:
        logger.error("Bot error", error=str(e))
        raise
    finally:
        await scheduler.stop()
        await sync.close()
        await bot.session.close()
        if redis is not None:
            await redis.aclose()
        await close_db()
        logger.info("Bot stopped")


def run() -> None:
    """Entry point for the application."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
