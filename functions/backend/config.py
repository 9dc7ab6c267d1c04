"""
Configuration and settings for the participant lifecycle backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import PARTICIPANTS_PATH


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Firebase Realtime Database (the production store)
    firebase_database_url: Optional[str] = Field(default=None)
    firebase_credentials_path: Optional[str] = Field(default=None)
    participants_path: str = Field(default=PARTICIPANTS_PATH)

    # SQL store (Postgres, or SQLite for local runs)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
