"""
Telegram Filter Word Bot
Classifies messages by a filter word and stores them in PostgreSQL.
"""
import asyncio
import logging
import os
import sys

import psycopg2
from telegram.error import TelegramError

from bot_handler import BotCommandHandler
from config import Config
from database import get_database_from_env

# Configure logging
log_dir = os.path.dirname(Config.LOG_FILE)
if log_dir:
    os.makedirs(log_dir, exist_ok=True)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(Config.LOG_FILE),
        logging.StreamHandler()
    ]
)

# Silence httpx INFO logs (HTTP requests)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


class FilterWordBot:
    """Owns the database gateway and the bot for the lifetime of the process."""

    def __init__(self):
        """
        Load configuration and open the database.

        Raises:
            ValueError: If configuration is incomplete
            psycopg2.Error: If the database is unreachable
        """
        Config.prompt_missing()
        Config.validate()
        Config.display()

        self.db = get_database_from_env()
        logger.info(f"✅ Connected to database {Config.DB_NAME} on {Config.DB_HOST}:{Config.DB_PORT}")

        self.bot_handler = BotCommandHandler(Config.TG_BOT_KEY, self.db, Config.SEND_TIMEOUT)

    async def start(self):
        """Start the bot and run until /stop is received."""
        logger.info("🚀 Starting Filter Word Bot...")
        await self.bot_handler.start_bot()

        logger.info("⚠️  Send /stop to the bot or press Ctrl+C to stop")
        logger.info("🟢 BOT IS ACTIVE - Waiting for messages...")

        await self.bot_handler.wait_until_stopped()

    async def stop(self):
        """Stop the bot and release the database."""
        try:
            await self.bot_handler.stop_bot()
        except Exception as e:
            logger.error(f"❌ Error stopping bot handler: {e}")
        finally:
            self.db.close()
        logger.info("✅ Bot stopped")


async def main() -> int:
    """Main entry point."""
    try:
        bot = FilterWordBot()
    except ValueError as e:
        logger.error(f"❌ {e}")
        return 1
    except psycopg2.Error as e:
        logger.error(f"❌ Error connecting to database: {e}")
        return 1

    try:
        await bot.start()
    except TelegramError as e:
        logger.error(f"❌ Error starting bot: {e}")
        return 1
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await bot.stop()

    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
