"""
Typed settings for the replay tracker service.

Uses Pydantic Settings to load configuration from environment variables
with validation and type safety. Local development reads the root .env
file; containers pass variables directly.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate_env import validate_env


class RiotConfig(BaseModel):
    # Riot routing hosts are "<region>.api.riotgames.com"
    host_template: str = "https://{region}.api.riotgames.com"
    request_timeout_seconds: float = 30.0
    user_agent: str = "replay-tracker/1.0"
    # Attempts per request when Riot answers 429 or 5xx
    retry_attempts: int = 3
    retry_wait_min_seconds: float = 1.0
    retry_wait_max_seconds: float = 20.0


class SyncConfig(BaseModel):
    match_sync_interval_minutes: int = Field(default=15)
    # Reads trigger a sync when the account cursor is older than this
    stale_after_minutes: int = Field(default=5)
    # Lookback used for match id listing when an account was never synced
    default_sync_window_seconds: int = Field(default=60 * 24 * 60 * 60)  # 60 days
    # Anything smaller is treated as an interrupted download
    replay_min_size_bytes: int = Field(default=1024 * 1024)
    replay_storage_dir: str = "bin/replays"
    download_chunk_size: int = Field(default=64 * 1024)
    match_list_max_limit: int = Field(default=100)
    # Also store summaries of matches that have no replay
    backfill_summaries: bool = Field(default=True)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    In Docker, environment variables are passed directly via docker-compose.
    For local development, loads from the root .env file. All settings are
    validated by Pydantic.
    """
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="allow",
    )

    database_url: str = Field(..., alias="DATABASE_URL")

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_async_to_sync(cls, v: str) -> str:
        """
        Convert asyncpg URL to psycopg URL for synchronous SQLAlchemy.

        Workers run synchronous sessions, so a shared asyncpg DATABASE_URL is
        rewritten instead of requiring a second variable.
        """
        if isinstance(v, str) and "asyncpg" in v:
            return v.replace("asyncpg", "psycopg")
        return v

    redis_url: str = Field("redis://localhost:6379/3", alias="REDIS_URL")
    riot_api_key: str | None = Field(None, alias="RIOT_API_KEY")
    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    sql_echo: bool = Field(False, alias="SQL_ECHO")
    riot_config: RiotConfig = Field(default_factory=RiotConfig)
    sync_config: SyncConfig = Field(default_factory=SyncConfig)
    bin_dir_override: str | None = Field(None, alias="BIN_DIR")

    @model_validator(mode="after")
    def _apply_bin_dir_override(self) -> Settings:
        """Store replays under $BIN_DIR/replays when BIN_DIR is set."""
        if self.bin_dir_override:
            self.sync_config.replay_storage_dir = str(Path(self.bin_dir_override) / "replays")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Settings are cached to avoid re-parsing environment variables
    on every access.
    """
    validate_env()
    return Settings()


# Global settings instance - import this in other modules
settings = get_settings()
