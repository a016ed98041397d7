"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.validators import validate_discord_snowflake


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    test_guild_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("test_guild_ids", "test_guilds")
    )
    sync_on_startup: bool = False

    @field_validator("test_guild_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: tuple[int, ...] | list[int]) -> tuple[int, ...]:
        """Validate Discord snowflake IDs and convert lists to tuples."""
        # Convert list to tuple if needed (from JSON array in env vars)
        if isinstance(v, list):
            v = tuple(v)
        for snowflake in v:
            validate_discord_snowflake(snowflake)
        return v


class JellyfinSettings(BaseModel):
    """Jellyfin media server configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    server_url: str = Field(
        default="http://localhost:8096",
        validation_alias=AliasChoices("server_url", "url", "host"),
    )
    api_key: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("api_key", "token")
    )
    user_id: str = ""
    device_id: str = "discord-jellyfin-player"
    client_name: str = "Discord Jellyfin Player"
    client_version: str = "0.1.0"
    max_streaming_bitrate: int = Field(default=96_000, ge=8_000, le=1_536_000)
    request_timeout_s: float = Field(default=10.0, gt=0, le=120)
    progress_report_interval_s: float = Field(default=5.0, gt=0)
    remote_control_enabled: bool = True
    keepalive_interval_s: float = Field(default=30.0, gt=0)
    socket_reconnect_initial_s: float = Field(default=1.0, gt=0)
    socket_reconnect_max_s: float = Field(default=30.0, gt=0)

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(ErrorMessages.JELLYFIN_URL_INVALID)
        return v.rstrip("/")


class DownloadSettings(BaseModel):
    """yt-dlp download configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    cache_dir: str = Field(
        default="./cache", validation_alias=AliasChoices("cache_dir", "cache_path")
    )
    audio_format: str = "mp3"
    audio_quality: str = "256K"
    ytdlp_format: str = "bestaudio"


class PlaybackSettings(BaseModel):
    """Session and voice transport configuration."""

    model_config = SettingsConfigDict(frozen=True)

    prefetch_window_ms: int = Field(default=30_000, ge=0)
    acquisition_poll_interval_s: float = Field(default=1.0, gt=0)
    acquisition_max_polls: int = Field(default=600, ge=1)
    progress_interval_s: float = Field(default=1.0, gt=0)
    default_volume: float = Field(default=0.5, ge=0.0, le=2.0)
    ffmpeg_before_options: str = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    ffmpeg_options: str = "-vn"


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__TEST_GUILD_IDS, etc. (nested with prefix)
    - JELLYFIN__SERVER_URL, JELLYFIN__API_KEY, JELLYFIN__USER_ID
    - DOWNLOAD__CACHE_DIR
    - PLAYBACK__PREFETCH_WINDOW_MS, PLAYBACK__DEFAULT_VOLUME
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    jellyfin: JellyfinSettings = Field(default_factory=JellyfinSettings)
    download: DownloadSettings = Field(default_factory=DownloadSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels))
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
