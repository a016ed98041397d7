"""Pydantic models for Jellyfin REST payloads and session websocket messages.

Jellyfin uses PascalCase keys; models map them onto snake_case fields via
aliases and ignore everything they do not need.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_jellyfin_player.domain.music.entities import RemoteStreamTrack
from discord_jellyfin_player.domain.music.value_objects import MediaKind, SearchHint, TrackId
from discord_jellyfin_player.domain.shared.types import NonNegativeInt

TICKS_PER_MILLISECOND: Final[int] = 10_000
UNKNOWN_TITLE: Final[str] = "Unknown Title"


class _JellyfinModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# ── REST ────────────────────────────────────────────────────────────────


class JellyfinItem(_JellyfinModel):
    """A single entry of ``/Items``."""

    id: str = Field(alias="Id", min_length=1)
    name: str = Field(default=UNKNOWN_TITLE, alias="Name")
    item_type: str = Field(default=MediaKind.AUDIO.value, alias="Type")
    album: str | None = Field(default=None, alias="Album")
    album_artist: str | None = Field(default=None, alias="AlbumArtist")
    artists: list[str] = Field(default_factory=list, alias="Artists")
    run_time_ticks: NonNegativeInt = Field(default=0, alias="RunTimeTicks")
    image_tags: dict[str, str] = Field(default_factory=dict, alias="ImageTags")

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return UNKNOWN_TITLE
        return v[:500]

    @field_validator("run_time_ticks", mode="before")
    @classmethod
    def _coerce_ticks(cls, v: Any) -> int:
        if v is None:
            return 0
        try:
            return max(0, int(v))
        except (TypeError, ValueError):
            return 0

    @property
    def duration_ms(self) -> int:
        return self.run_time_ticks // TICKS_PER_MILLISECOND

    @property
    def artist(self) -> str:
        if self.album_artist:
            return self.album_artist
        return self.artists[0] if self.artists else ""

    def to_track(self, server_url: str) -> RemoteStreamTrack:
        artwork_url = None
        if "Primary" in self.image_tags:
            artwork_url = f"{server_url}/Items/{self.id}/Images/Primary"

        return RemoteStreamTrack(
            id=TrackId(self.id),
            name=self.name,
            artist=self.artist,
            album=self.album or "",
            duration_ms=self.duration_ms,
            artwork_url=artwork_url,
        )

    @property
    def kind(self) -> MediaKind | None:
        try:
            return MediaKind(self.item_type)
        except ValueError:
            return None

    def to_search_hint(self) -> SearchHint | None:
        kind = self.kind
        if kind is None:
            return None
        return SearchHint(id=self.id, name=self.name, kind=kind, artist=self.artist)


class JellyfinItemsResponse(_JellyfinModel):
    items: list[JellyfinItem] = Field(default_factory=list, alias="Items")
    total_record_count: NonNegativeInt = Field(default=0, alias="TotalRecordCount")


class PlaybackReport(_JellyfinModel):
    """Body of the ``/Sessions/Playing*`` endpoints."""

    item_id: str = Field(serialization_alias="ItemId")
    position_ticks: NonNegativeInt = Field(default=0, serialization_alias="PositionTicks")
    is_paused: bool = Field(default=False, serialization_alias="IsPaused")

    @classmethod
    def at(cls, item_id: str, progress_ms: int, *, is_paused: bool = False) -> PlaybackReport:
        return cls(
            item_id=item_id,
            position_ticks=max(0, progress_ms) * TICKS_PER_MILLISECOND,
            is_paused=is_paused,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ── Session websocket ───────────────────────────────────────────────────


class SessionMessage(_JellyfinModel):
    message_type: str = Field(alias="MessageType")
    data: Any = Field(default=None, alias="Data")


class PlayRequest(_JellyfinModel):
    item_ids: list[str] = Field(default_factory=list, alias="ItemIds")
    play_command: str = Field(default="PlayNow", alias="PlayCommand")
    start_index: NonNegativeInt | None = Field(default=None, alias="StartIndex")

    def selection(self) -> list[str]:
        """Item ids to enqueue, starting from ``StartIndex`` when one is given."""
        if self.start_index is None:
            return list(self.item_ids)
        return list(self.item_ids[self.start_index :])


class PlaystateRequest(_JellyfinModel):
    command: str = Field(alias="Command")
