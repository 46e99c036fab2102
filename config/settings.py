"""
Application settings using Pydantic Settings.
Loads configuration from .env file with validation.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    server_host: str = Field(
        default="127.0.0.1",
        description="Server bind host"
    )
    server_port: int = Field(
        default=8000,
        description="Server bind port"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # -------------------------------------------------------------------------
    # Rating Store
    # -------------------------------------------------------------------------
    rating_backend: Literal["sqlite", "supabase"] = Field(
        default="sqlite",
        description="Backend holding the shared like/dislike counters"
    )
    ratings_db_path: str = Field(
        default="data/ratings.sqlite3",
        description="SQLite database file (sqlite backend)"
    )
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (supabase backend)"
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key (supabase backend)"
    )
    store_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for a single store operation"
    )

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------
    media_dir: str = Field(
        default="media",
        description="Directory scanned for audio and cover files"
    )

    # -------------------------------------------------------------------------
    # Client Settings
    # -------------------------------------------------------------------------
    api_base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of the ratings API used by the client"
    )
    ratings_poll_seconds: float = Field(
        default=7.0,
        ge=1,
        le=300,
        description="Interval between background rating refreshes"
    )
    vote_store_path: str = Field(
        default="data/votes.json",
        description="File holding the local actor's votes"
    )

    @property
    def supabase_configured(self) -> bool:
        """Check if both Supabase values are present."""
        return bool(self.supabase_url and self.supabase_service_role_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.
    Uses lru_cache to only load settings once.
    """
    return Settings()
