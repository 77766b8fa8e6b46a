"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Shared secret for third-party clients. When unset, mutating endpoints
    # fall back to the same-origin check (see core.auth).
    api_token: str | None = Field(default=None, validation_alias="API_TOKEN")

    # CORS allow-list for the bookmarks resource
    app_url: str | None = Field(default="http://localhost:3000", validation_alias="APP_URL")
    extension_origin: str | None = Field(
        default="chrome-extension://eiadckjccgkneelgkafmaeabookiooff",
        validation_alias="EXTENSION_ORIGIN",
    )

    # Screenshot capture service
    screenshot_api_url: str | None = Field(default=None, validation_alias="SCREENSHOT_API_URL")
    screenshot_api_key: str | None = Field(default=None, validation_alias="SCREENSHOT_API_KEY")
    screenshot_timeout: float = Field(default=30.0, validation_alias="SCREENSHOT_TIMEOUT")

    # Object storage for screenshots (served under /media)
    storage_dir: str = Field(default="./media", validation_alias="STORAGE_DIR")
    storage_public_url: str = Field(
        default="http://localhost:8000/media",
        validation_alias="STORAGE_PUBLIC_URL",
    )

    # Language model (OpenAI-compatible endpoint). The model itself is chosen
    # at runtime through the settings table.
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, validation_alias="OPENAI_BASE_URL")
    ai_content_max_chars: int = Field(default=3000, validation_alias="AI_CONTENT_MAX_CHARS")

    # Page fetching
    fetch_timeout: float = Field(default=10.0, validation_alias="FETCH_TIMEOUT")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def allowed_origins(self) -> list[str]:
        """Origins allowed to call the bookmarks resource cross-origin."""
        return [origin for origin in (self.app_url, self.extension_origin) if origin]

    @property
    def is_sqlite(self) -> bool:
        """True when the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
