"""
Application configuration using Pydantic Settings.
Loads environment variables from .env file.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_env: str = Field(default="development", alias="APP_ENV")
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # -------------------------------------------------------------------------
    # CORS
    # -------------------------------------------------------------------------
    cors_origins: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # -------------------------------------------------------------------------
    # PostgreSQL (clients / projects tables)
    # -------------------------------------------------------------------------
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(default="project_portal", alias="POSTGRES_DB")
    postgres_user: str = Field(default="postgres", alias="POSTGRES_USER")
    postgres_password: str = Field(default="postgres", alias="POSTGRES_PASSWORD")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    @property
    def async_database_url(self) -> str:
        """Build async database URL for SQLAlchemy."""
        if self.database_url:
            # Ensure we use the async driver
            url = self.database_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+psycopg://", 1)
            elif url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+psycopg://", 1)
            return url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # -------------------------------------------------------------------------
    # HubSpot CRM
    # -------------------------------------------------------------------------
    hubspot_private_app_token: str | None = Field(
        default=None,
        alias="HUBSPOT_PRIVATE_APP_TOKEN",
        description="Private app token used as bearer credential",
    )
    hubspot_api_base_url: str = Field(
        default="https://api.hubapi.com",
        alias="HUBSPOT_API_BASE_URL",
    )
    hubspot_timeout_seconds: float = Field(
        default=10.0,
        alias="HUBSPOT_TIMEOUT_SECONDS",
        description="Per-attempt request timeout",
    )
    hubspot_max_attempts: int = Field(
        default=3,
        alias="HUBSPOT_MAX_ATTEMPTS",
        description="Total attempts per call, first try included",
    )
    hubspot_backoff_floor_seconds: float = Field(
        default=0.5,
        alias="HUBSPOT_BACKOFF_FLOOR_SECONDS",
    )
    hubspot_closed_status: str = Field(
        default="COMPLETED",
        alias="HUBSPOT_CLOSED_STATUS",
        description="The one remote service status that maps to a Closed project",
    )

    # -------------------------------------------------------------------------
    # Sync tunables (default / hard ceiling)
    # -------------------------------------------------------------------------
    sync_default_page_size: int = Field(default=50, alias="SYNC_DEFAULT_PAGE_SIZE")
    sync_max_page_size: int = Field(default=100, alias="SYNC_MAX_PAGE_SIZE")
    sync_default_pages: int = Field(default=10, alias="SYNC_DEFAULT_PAGES")
    sync_max_pages: int = Field(default=50, alias="SYNC_MAX_PAGES")
    sync_default_concurrency: int = Field(default=5, alias="SYNC_DEFAULT_CONCURRENCY")
    sync_max_concurrency: int = Field(default=20, alias="SYNC_MAX_CONCURRENCY")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Note: Settings are cached! If you change .env, restart the server.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Call this if you need to reload settings."""
    get_settings.cache_clear()
