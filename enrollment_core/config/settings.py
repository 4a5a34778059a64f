"""
Settings Configuration

Centralized runtime settings for the enrollment engine.
All values are loaded from environment variables (a .env file is read first).
"""
import os

from dotenv import load_dotenv

load_dotenv()


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int, minimum: int = None) -> int:
    """Get an integer value from environment variable, falling back on garbage."""
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return minimum
    return value


class Settings:
    """
    Runtime settings for the application.

    To add a new setting:
    1. Add it here as a class attribute
    2. Load it from an environment variable
    3. Import `settings` where you need it
    """

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./enrollment.db")
    DB_ECHO: bool = get_bool_env("DB_ECHO", False)

    # Bulk enrollment fan-out bound (concurrent store calls per batch)
    BULK_ENROLL_MAX_CONCURRENCY: int = get_int_env("BULK_ENROLL_MAX_CONCURRENCY", 8, minimum=1)

    # Prerequisite cycle detection on graph builds
    FEATURE_CYCLE_DIAGNOSTICS: bool = get_bool_env("FEATURE_CYCLE_DIAGNOSTICS", True)

    # Logging / debugging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    DEBUG: bool = get_bool_env("DEBUG", False)

    @classmethod
    def as_dict(cls) -> dict:
        """Public settings snapshot (used by the CLI `db config` view)."""
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if name.isupper()
        }


settings = Settings()
