"""Configuration management for the radio station service."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TAGRADIO_",
        case_sensitive=False,
        extra="ignore",
    )

    # API Settings
    app_name: str = "Tag Radio Station Service"
    app_version: str = __version__
    api_prefix: str = Field(default="/api/v1", description="Prefix for all API routers")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json/console)")

    # Database Settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///./tagradio.db",
        description="Async SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    create_tables_on_startup: bool = Field(default=True, description="Create missing tables at startup")

    # Security Settings
    admin_api_key: Optional[str] = Field(
        default=None,
        description="When set, admin routes require a matching X-Admin-Key header",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()


app_settings = get_settings()
