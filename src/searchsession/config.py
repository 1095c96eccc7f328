"""Configuration for searchsession.

Settings are read from the environment (prefix ``SEARCHSESSION_``) or an
optional ``.env`` file, and can be overridden with keyword arguments in tests.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings."""

    model_config = SettingsConfigDict(
        env_prefix="SEARCHSESSION_",
        env_file=".env",
        extra="ignore",
    )

    api_base_url: str = Field(
        default="http://localhost:3333", description="Base URL of the search service"
    )
    api_key: str | None = Field(default=None, description="Bearer token for the API")
    request_timeout: float = Field(
        default=30.0, gt=0, description="Timeout for group/history requests (seconds)"
    )
    search_timeout: float = Field(
        default=120.0, gt=0, description="Timeout for a search dispatch (seconds)"
    )
    state_dir: Path | None = Field(
        default=None, description="Where session state is persisted"
    )
    log_level: str = Field(default="INFO")


def get_config_dir(settings: Settings | None = None) -> Path:
    """Get/create the state directory (defaults to ~/.searchsession)."""
    settings = settings or get_settings()
    d = settings.state_dir or Path.home() / ".searchsession"
    d.mkdir(parents=True, exist_ok=True)
    return d


@lru_cache
def get_settings() -> Settings:
    """Get the settings singleton."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    get_settings.cache_clear()
