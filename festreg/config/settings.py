"""
Application Settings

Centralized configuration for the backend.
All values are loaded from environment variables (.env is read first).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    """Get an integer value from environment variable, falling back on bad input."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


class Settings:
    """
    Settings for the application.

    To add a new setting:
    1. Add it here as a class attribute
    2. Load it from environment variable
    3. Read it through the `settings` singleton
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Store
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./festreg.db")

    # Identity
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = get_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)

    # Reward ledger
    CORE_EVENT_POINTS: int = get_int_env("CORE_EVENT_POINTS", 50)
    DEFAULT_EVENT_POINTS: int = get_int_env("DEFAULT_EVENT_POINTS", 30)

    # Notifier
    USE_REDIS_BROADCAST: bool = get_bool_env("USE_REDIS_BROADCAST", False)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"


# Singleton instance for easy importing
settings = Settings()
