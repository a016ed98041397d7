"""DTOs for reading a guild session's queue."""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.music.entities import Track
from ...domain.music.value_objects import PlaybackState
from ...domain.shared.types import DiscordSnowflake, NonNegativeInt


class QueueInfo(BaseModel):
    guild_id: DiscordSnowflake
    state: PlaybackState
    active_track: Track | None
    active_track_number: NonNegativeInt
    tracks: list[Track]
    total_duration_ms: NonNegativeInt
    progress_ms: NonNegativeInt

    @property
    def total_tracks(self) -> int:
        return len(self.tracks)

    @property
    def upcoming_tracks(self) -> list[Track]:
        return self.tracks[self.active_track_number :]

    @property
    def remaining_ms(self) -> int | None:
        if self.active_track is None:
            return None
        return max(0, self.active_track.duration_ms - self.progress_ms)
