from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from termindex.exceptions import ConfigError


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    name: str = "termindex"
    env: str = "development"
    log_level: str = "INFO"


class RedisConfig(BaseModel):
    """Redis connection configuration values."""

    # Database 0 on a local server
    url: str = "redis://localhost:6379/0"
    socket_timeout: Optional[float] = 5.0
    socket_connect_timeout: Optional[float] = 5.0
    scan_count: int = 1000  # SCAN batch size hint for prefix enumeration


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="TERMINDEX_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    redis: RedisConfig = RedisConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        raise ConfigError(str(e)) from e
