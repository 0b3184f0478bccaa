"""
Settings and environment management for the Persona Retention backend.

Configuration is loaded with pydantic-settings from environment variables
(prefixed with PERSONA_) and an optional .env file.

Environment Variables:
- PERSONA_DEFAULT_MODE: Classification mode used for new sessions (default: dominant)
- PERSONA_MIN_USERS: Noise guard for alerts and the aggregate table (default: 5)
- PERSONA_MIN_ENTRY_CHARS: Default minimum text length for month feedback (default: 0)
- PERSONA_MAX_UPLOAD_BYTES: Upper bound for uploaded CSV files (default: 5 MiB)
- PERSONA_CORS_ORIGINS: Origins allowed to call the API
- PERSONA_LOG_LEVEL: Root log level (default: INFO)
- PERSONA_LOAD_SAMPLE_ON_STARTUP: Seed the session with the sample dataset (default: true)

Usage:
    from persona_retention.core.config import get_settings

    settings = get_settings()
    min_users = settings.min_users
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from persona_retention.models.enums import ClassificationMode


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        default_mode: Classification mode a fresh session starts in.
        min_users: Minimum bucket size for alerts and the filtered table.
        min_entry_chars: Default minimum text length for month feedback entries.
        max_upload_bytes: Uploads larger than this are rejected with HTTP 413.
        cors_origins: Browser origins allowed by the CORS middleware.
        log_level: Level passed to logging.basicConfig in main.py.
        load_sample_on_startup: Whether the session starts with the sample CSV.
    """

    model_config = SettingsConfigDict(
        env_prefix='PERSONA_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    default_mode: ClassificationMode = ClassificationMode.DOMINANT

    # Buckets below this size are too noisy to alert on
    min_users: int = 5

    min_entry_chars: int = 0

    max_upload_bytes: int = 5 * 1024 * 1024

    cors_origins: List[str] = [
        'http://localhost:5173',  # Vite dev server
        'http://127.0.0.1:5173',
    ]

    log_level: str = 'INFO'

    load_sample_on_startup: bool = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
