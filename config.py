"""
Configuration management for the filter word bot.
Loads settings from environment variables.
"""
import os
import sys
from getpass import getpass
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Configuration container for the bot."""

    # Bot token issued by @BotFather
    TG_BOT_KEY: str = os.getenv("TG_BOT_KEY", "")

    # Timeout (in seconds) for every request sent to the Bot API
    SEND_TIMEOUT: float = float(os.getenv("SEND_TIMEOUT", "10"))

    # Log file (directory is created on startup)
    LOG_FILE: str = os.getenv("LOG_FILE", "data/filter_bot.log")

    # Database configuration
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
    DB_NAME: str = os.getenv("DB_NAME", "Telegram_Filter_Bot")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")

    # Seconds to wait for a new connection, milliseconds for a single statement
    DB_CONNECT_TIMEOUT: int = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))
    DB_STATEMENT_TIMEOUT_MS: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))

    @classmethod
    def prompt_missing(cls) -> None:
        """
        Ask for the database password and bot token when they are not set.

        Only prompts when stdin is a terminal, so a service started without
        a TTY falls through to validate() and fails there.
        """
        if not sys.stdin.isatty():
            return

        if not cls.DB_PASSWORD:
            cls.DB_PASSWORD = getpass("Enter the PostgreSQL password: ")

        if not cls.TG_BOT_KEY:
            cls.TG_BOT_KEY = input("Enter your bot token: ").strip()

    @classmethod
    def validate(cls) -> None:
        """Validate that all required configuration is present."""
        errors = []

        if not cls.TG_BOT_KEY:
            errors.append("TG_BOT_KEY is required")

        if cls.SEND_TIMEOUT <= 0:
            errors.append("SEND_TIMEOUT must be positive")

        # Database validation
        if not cls.DB_HOST:
            errors.append("DB_HOST is required")

        if not cls.DB_NAME:
            errors.append("DB_NAME is required")

        if not cls.DB_USER:
            errors.append("DB_USER is required")

        if not cls.DB_PASSWORD:
            errors.append("DB_PASSWORD is required")

        if cls.DB_STATEMENT_TIMEOUT_MS <= 0:
            errors.append("DB_STATEMENT_TIMEOUT_MS must be positive")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    @classmethod
    def display(cls) -> None:
        """Display current configuration (for debugging)."""
        print("=" * 60)
        print("🤖 Filter Word Bot Configuration")
        print("=" * 60)
        print(f"TG_BOT_KEY: {'*' * 10 if cls.TG_BOT_KEY else '(not set)'}")
        print(f"SEND_TIMEOUT: {cls.SEND_TIMEOUT}s")
        print(f"LOG_FILE: {cls.LOG_FILE}")
        print("")
        print("📊 Database Configuration:")
        print(f"DB_HOST: {cls.DB_HOST}")
        print(f"DB_PORT: {cls.DB_PORT}")
        print(f"DB_NAME: {cls.DB_NAME}")
        print(f"DB_USER: {cls.DB_USER}")
        print(f"DB_PASSWORD: {'*' * len(cls.DB_PASSWORD) if cls.DB_PASSWORD else '(not set)'}")
        print(f"DB_CONNECT_TIMEOUT: {cls.DB_CONNECT_TIMEOUT}s")
        print(f"DB_STATEMENT_TIMEOUT_MS: {cls.DB_STATEMENT_TIMEOUT_MS}ms")
        print("=" * 60)
