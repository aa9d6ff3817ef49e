"""Application configuration module."""

from functools import lru_cache
from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .. import __version__

LOG_LEVELS = ("trace", "debug", "info", "warning", "error")


class Settings(BaseSettings):
    """
    Application settings using Pydantic BaseSettings.

    Automatically reads from ``MEMEBASE_*`` environment variables.
    """

    # Application settings
    app_name: str = "Memebase"
    app_version: str = __version__
    app_env: Literal["dev", "test", "prod"] = "dev"
    port: int = Field(default=4000, ge=1, le=65535)

    # Logging settings
    log_level: str = "error"
    log_json: bool = True
    log_file: Optional[str] = None

    # Store settings
    store_backend: Literal["mongo", "sql", "memory"] = "mongo"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_user: Optional[str] = None
    mongo_password: Optional[str] = None
    mongo_database: str = "memebase"
    mongo_collection: str = "memes"
    database_url: str = "sqlite+aiosqlite:///./memebase.db"

    # Per-call timeouts (seconds)
    document_timeout: float = Field(default=3.0, gt=0)
    aggregate_timeout: float = Field(default=6.0, gt=0)
    connect_timeout: float = Field(default=30.0, gt=0)

    # Rate limiter settings
    limiter_enabled: bool = True
    limiter_rps: float = Field(default=10.0, gt=0)
    limiter_burst: int = Field(default=20, ge=1)

    # CORS settings
    cors_trusted_origins: Annotated[List[str], NoDecode] = []

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> str:
        """Lower-case the level name; unknown names fall back to ``error``."""
        level = (v or "").strip().lower()
        if level == "warn":
            level = "warning"
        return level if level in LOG_LEVELS else "error"

    @field_validator("cors_trusted_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        """Accept a space separated string of origins."""
        if isinstance(v, str):
            return v.split()
        return v

    model_config = SettingsConfigDict(
        env_prefix="MEMEBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get application settings.

    Returns:
        Settings instance
    """
    return Settings()
