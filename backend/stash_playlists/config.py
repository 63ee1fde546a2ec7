"""
Configuration settings using Pydantic Settings.
"""

from pathlib import Path
from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

import os

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Fallbacks only; the settings table takes precedence
    STASH_SERVER: str = os.environ.get("STASH_SERVER") or ""
    STASH_API: str = os.environ.get("STASH_API") or ""
    STASH_TIMEOUT_SECONDS: float = 30.0
    STASH_MAX_RETRIES: int = 2
    STASH_RETRY_BASE_SECONDS: float = 0.5
    STASH_RETRY_MAX_SECONDS: float = 4.0

    REFETCH_DELAY_SECONDS: float = 0.1
    MARKERS_ORGANISED_TAG: str = "Markers Organised"

    DATABASE_PATH: str = "database/stash_playlists.db"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    DEBUG: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    @model_validator(mode="after")
    def resolve_relative_paths(self):
        db_path = Path(self.DATABASE_PATH)
        if not db_path.is_absolute():
            self.DATABASE_PATH = str((BASE_DIR / db_path).resolve())

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    :return: Cached Settings instance
    :rtype: Settings
    """
    return Settings()


settings = get_settings()
