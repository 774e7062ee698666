"""Centralized settings for the Folio service.

Uses pydantic-settings to load from environment variables (prefixed FOLIO_)
with development defaults that run against a local SQLite file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Folio service settings loaded from environment variables."""

    # --- Database ---
    database_url: str = "sqlite:///data/portfolio.sqlite3"
    db_echo: bool = False

    # --- API ---
    api_prefix: str = "/api"
    cors_origins: str = ""
    expose_internal_errors: bool = False

    # --- Orders ---
    settlement_days: int = 2

    # --- Price refresh ---
    price_refresh_workers: int = 4
    price_fetch_timeout_seconds: float = 10.0

    model_config = {
        "env_prefix": "FOLIO_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
