"""
Music Bounded Context

Tracks, the per-guild play queue, playback state and the signals exchanged
between sessions, the transport and reporters.
"""

from discord_jellyfin_player.domain.music.entities import (
    DownloadableTrack,
    GuildPlaybackState,
    RemoteStreamTrack,
    Track,
)
from discord_jellyfin_player.domain.music.events import (
    PlaybackPaused,
    PlaybackResumed,
    PlaybackStarted,
    PlaybackStopped,
    RemoteControlRequested,
    TransportEnded,
    TransportPauseRequested,
    TransportPlayRequested,
    TransportProgressed,
    TransportStopRequested,
    TransportUnpauseRequested,
)
from discord_jellyfin_player.domain.music.queue import PlayQueue
from discord_jellyfin_player.domain.music.value_objects import (
    AcquisitionOutcome,
    AcquisitionState,
    ControlCommand,
    MediaKind,
    PlaybackState,
    SearchHint,
    SourceKind,
    TrackId,
)

__all__ = [
    # Entities
    "Track",
    "RemoteStreamTrack",
    "DownloadableTrack",
    "GuildPlaybackState",
    "PlayQueue",
    # Value Objects
    "TrackId",
    "SourceKind",
    "AcquisitionState",
    "AcquisitionOutcome",
    "PlaybackState",
    "ControlCommand",
    "MediaKind",
    "SearchHint",
    # Events
    "TransportEnded",
    "TransportProgressed",
    "RemoteControlRequested",
    "TransportPlayRequested",
    "TransportStopRequested",
    "TransportPauseRequested",
    "TransportUnpauseRequested",
    "PlaybackStarted",
    "PlaybackStopped",
    "PlaybackPaused",
    "PlaybackResumed",
]
