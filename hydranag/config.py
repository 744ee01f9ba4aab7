"""Configuration management from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/hydranag.db"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Engine
    COLLABORATOR_TIMEOUT: float = float(os.getenv("COLLABORATOR_TIMEOUT", "10"))
    STALE_TOLERANCE_MINUTES: int = int(os.getenv("STALE_TOLERANCE_MINUTES", "1"))
    MAX_REMINDERS_PER_DAY: int = int(os.getenv("MAX_REMINDERS_PER_DAY", "24"))

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        if cls.COLLABORATOR_TIMEOUT <= 0:
            raise ValueError("COLLABORATOR_TIMEOUT must be positive")

        if cls.MAX_REMINDERS_PER_DAY < 1:
            raise ValueError("MAX_REMINDERS_PER_DAY must be at least 1")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
