"""Port interface for building media-server stream URLs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from discord_jellyfin_player.domain.music.value_objects import TrackId


class StreamUrlBuilder(ABC):
    """Interface for resolving a remote-stream track id into a playable URI."""

    @abstractmethod
    def build_stream_url(self, track_id: TrackId) -> str:
        """Build a stream URL for the given track id. Pure, performs no I/O."""
        ...
