"""Core domain entities for the music bounded context."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from discord_jellyfin_player.domain.music.queue import PlayQueue
from discord_jellyfin_player.domain.music.value_objects import (
    AcquisitionState,
    PlaybackState,
    SourceKind,
    TrackIdField,
)
from discord_jellyfin_player.domain.shared.exceptions import InvalidOperationError
from discord_jellyfin_player.domain.shared.types import (
    DiscordSnowflake,
    DurationMs,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    TrackNameStr,
)


class TrackBase(BaseModel):
    """Fields shared by every track variant. Descriptive fields never change."""

    model_config = ConfigDict(strict=True, validate_assignment=True)

    id: TrackIdField = Field(frozen=True)
    name: TrackNameStr = Field(frozen=True)
    artist: str = Field(default="", frozen=True)
    album: str = Field(default="", frozen=True)
    duration_ms: DurationMs = Field(default=0, frozen=True)
    artwork_url: HttpUrlStr | None = Field(default=None, frozen=True)

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind(getattr(self, "kind"))

    @property
    def duration_formatted(self) -> str:
        """Format duration as M:SS or H:MM:SS."""
        hours, remainder = divmod(self.duration_ms // 1000, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    @property
    def display_name(self) -> str:
        if self.artist:
            return f"{self.name} by {self.artist}"
        return self.name


class RemoteStreamTrack(TrackBase):
    """Track streamed straight from the media server; playable from its id alone."""

    model_config = ConfigDict(strict=True, frozen=True)

    kind: Literal["remote_stream"] = "remote_stream"


class DownloadableTrack(TrackBase):
    """Track that must be downloaded and converted before it can be played.

    ``acquisition_state`` and ``local_path`` are written only by the acquisition
    pipeline through the ``mark_*`` methods. Everything else reads them.
    """

    kind: Literal["downloadable"] = "downloadable"
    locator: HttpUrlStr = Field(frozen=True)
    acquisition_state: AcquisitionState = AcquisitionState.NOT_STARTED
    local_path: NonEmptyStr | None = None

    @property
    def is_ready(self) -> bool:
        return self.acquisition_state == AcquisitionState.READY

    def _transition_to(self, new_state: AcquisitionState) -> None:
        if not self.acquisition_state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self.acquisition_state.value,
                message=(
                    f"Cannot move track '{self.id}' from "
                    f"{self.acquisition_state.value} to {new_state.value}"
                ),
            )
        self.acquisition_state = new_state

    def mark_acquiring(self) -> None:
        self._transition_to(AcquisitionState.ACQUIRING)

    def mark_ready(self, local_path: str) -> None:
        self._transition_to(AcquisitionState.READY)
        self.local_path = local_path

    def mark_failed(self) -> None:
        self._transition_to(AcquisitionState.FAILED)


Track = Annotated[RemoteStreamTrack | DownloadableTrack, Field(discriminator="kind")]


class GuildPlaybackState(BaseModel):
    """Playback state for a single guild, owned exclusively by its session actor."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    guild_id: DiscordSnowflake
    queue: PlayQueue = Field(default_factory=PlayQueue)
    playing: bool = False
    paused: bool = False
    progress_ms: NonNegativeInt = 0

    @property
    def state(self) -> PlaybackState:
        return PlaybackState.from_flags(self.playing, self.paused)

    @property
    def is_idle(self) -> bool:
        return self.state == PlaybackState.IDLE

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == PlaybackState.PAUSED

    def engage(self) -> None:
        """Mark a freshly activated track as playing from the start."""
        self.playing = True
        self.paused = False
        self.progress_ms = 0

    def settle_idle(self) -> None:
        self.playing = False
        self.paused = False
        self.progress_ms = 0

    def reset(self) -> None:
        """Return to a fresh idle state with an empty queue."""
        self.settle_idle()
        self.queue.clear()
