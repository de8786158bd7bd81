"""
Filewatch Configuration Module.

Default watcher and logging settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Nested BaseSettings classes read os.environ, so the .env file has to be
# loaded before any of them is instantiated
_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


class WatcherSettings(BaseSettings):
    """Defaults for watcher construction parameters."""

    model_config = SettingsConfigDict(env_prefix="FILEWATCH_")

    poll_interval_ms: int = Field(default=500, gt=0, description="Timestamp polling interval")
    grace_period_ms: int = Field(
        default=1000,
        ge=0,
        description="Quiet period before a change is reported, 0 disables debouncing",
    )
    fallback_poll_interval_ms: int = Field(
        default=500,
        gt=0,
        description="Polling interval used while the parent directory does not exist",
    )
    observer_join_timeout: float = Field(default=5.0, ge=0.0)


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="console")  # "json" or "console"

    @field_validator("format")
    @classmethod
    def check_format(cls, v: str) -> str:
        """Only the json and console renderers are available."""
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log format must be 'json' or 'console'")
        return v


class Settings(BaseSettings):
    """Main settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="filewatch")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
