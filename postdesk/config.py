"""
Configuration and settings for the admin backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Single administrator identity
    admin_username: Optional[str] = Field(default=None)
    admin_password: Optional[str] = Field(default=None)

    # Session cookie signing
    session_secret: Optional[str] = Field(default=None)
    session_duration_seconds: int = Field(default=60 * 60 * 4)

    # Record store (Google Apps Script in front of a spreadsheet)
    google_script_url: Optional[str] = Field(default=None)
    google_secret_key: Optional[str] = Field(default=None)

    # Asset store (GitHub repository contents)
    github_token: Optional[str] = Field(default=None)
    github_username: Optional[str] = Field(default=None)
    github_repo: Optional[str] = Field(default=None)
    github_branch: str = Field(default="main")
    github_api_url: str = Field(default="https://api.github.com")

    request_timeout_seconds: float = Field(default=30)

    # uvicorn listener for `postdesk` / `python -m postdesk.app`
    port: int = Field(default=8000, validation_alias="POSTDESK_PORT")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias="POSTDESK_USE_IN_MEMORY_BACKENDS",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
