"""Pydantic models for yt-dlp download configuration."""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_jellyfin_player.domain.music.entities import DownloadableTrack
from discord_jellyfin_player.domain.music.value_objects import TrackId
from discord_jellyfin_player.domain.shared.types import NonEmptyStr, PositiveInt

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
OUTPUT_PREFIX: Final[str] = "yt_"
UNKNOWN_TITLE: Final[str] = "Unknown Title"


class ExtractAudioPostprocessor(BaseModel):
    """FFmpegExtractAudio post-processor entry."""

    model_config = ConfigDict(frozen=True)

    key: NonEmptyStr = "FFmpegExtractAudio"
    preferredcodec: NonEmptyStr = "mp3"
    preferredquality: NonEmptyStr = "256"


class YtDlpDownloadOpts(BaseModel):
    """Typed yt-dlp options passed to YoutubeDL for a single download."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr = "bestaudio"
    outtmpl: NonEmptyStr = f"{OUTPUT_PREFIX}%(id)s.%(ext)s"
    postprocessors: list[ExtractAudioPostprocessor] = Field(
        default_factory=lambda: [ExtractAudioPostprocessor()]
    )


class YtDlpVideoInfo(BaseModel):
    """Trimmed yt-dlp extraction result used to build a downloadable track."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr
    title: str = UNKNOWN_TITLE
    webpage_url: str | None = None
    duration: float | None = None
    thumbnail: str | None = None
    uploader: str | None = None
    channel: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        """Fall back to default when yt-dlp sends empty or non-string title."""
        if not isinstance(v, str) or not v.strip():
            return UNKNOWN_TITLE
        return v[:500]

    @field_validator("webpage_url", "thumbnail", "uploader", "channel", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> float | None:
        if v is None:
            return None
        try:
            val = float(v)
            return val if val >= 0 else None
        except (TypeError, ValueError):
            return None

    def to_track(self, fallback_url: str) -> DownloadableTrack:
        thumbnail = self.thumbnail if self.thumbnail and self.thumbnail.startswith("http") else None
        return DownloadableTrack(
            id=TrackId(self.id),
            name=self.title,
            artist=self.uploader or self.channel or "",
            duration_ms=int((self.duration or 0) * 1000),
            artwork_url=thumbnail,
            locator=self.webpage_url or fallback_url,
        )
