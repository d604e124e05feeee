"""
TokenHealth Bot entry point.

Initializes all components and starts the bot.
This is the main module that ties everything together.

Run with: python -m tokenhealth.main
"""

import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from tokenhealth.config import Settings, get_settings
from tokenhealth.handlers import setup_routers
from tokenhealth.services.factory import ServiceFactory


def setup_logging(level: str) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiogram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def validate_config(settings: Settings) -> None:
    """
    Check settings the bot cannot start without.

    Provider keys are optional (free tiers), so only the bot token is
    required. Missing optional keys are reported as warnings.

    Raises:
        RuntimeError: If TELEGRAM_BOT_TOKEN is missing.
    """
    if not settings.telegram_bot_token:
        raise RuntimeError("Missing required env var: TELEGRAM_BOT_TOKEN")

    logger = logging.getLogger(__name__)
    optional = {
        "COINGECKO_API_KEY": settings.coingecko_api_key,
        "ETHERSCAN_API_KEY": settings.etherscan_api_key,
        "GITHUB_TOKEN": settings.github_token,
    }
    missing = [name for name, value in optional.items() if not value]
    if missing and settings.is_production:
        logger.warning(f"Running without optional keys: {', '.join(missing)} (free-tier rate limits apply)")


async def main() -> None:
    """
    Main application entry point.

    Initializes:
    1. Configuration from environment
    2. Logging
    3. Services via factory
    4. Bot and dispatcher
    5. Handlers and middleware

    Then starts polling for updates.
    """
    settings = get_settings()

    # Setup logging first (so validation errors are logged)
    setup_logging(settings.log_level)
    validate_config(settings)
    logger = logging.getLogger(__name__)

    logger.info("=" * 50)
    logger.info("TokenHealth Bot starting...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Metrics TTL: {settings.metrics_ttl_seconds}s")
    logger.info("=" * 50)

    factory = ServiceFactory(settings)
    scanner = factory.create_scanner()

    bot = Bot(
        token=settings.telegram_bot_token,
        default=DefaultBotProperties(
            parse_mode=ParseMode.HTML,
        ),
    )
    dp = Dispatcher()
    setup_routers(dp, scanner, factory.history)

    async def on_shutdown() -> None:
        logger.info("Shutting down...")
        await bot.session.close()

    dp.shutdown.register(on_shutdown)

    logger.info("Bot is ready. Starting polling...")

    try:
        await dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
        )
    except Exception as e:
        logger.exception(f"Bot stopped with error: {e}")
        raise
    finally:
        logger.info("Bot stopped.")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot stopped by user.")
