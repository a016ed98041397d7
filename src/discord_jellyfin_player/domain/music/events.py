"""Signals exchanged between guild sessions, the audio transport and reporters.

Inbound signals are consumed by a guild's playback session. Outbound signals
are produced by the session for the voice transport and for playstate
telemetry consumers.
"""

from __future__ import annotations

from pydantic import Field

from discord_jellyfin_player.domain.music.entities import Track
from discord_jellyfin_player.domain.music.value_objects import ControlCommand
from discord_jellyfin_player.domain.shared.events import DomainEvent
from discord_jellyfin_player.domain.shared.types import (
    DiscordSnowflake,
    DurationMs,
    NonEmptyStr,
    NonNegativeInt,
    TrackNumber,
)


class GuildEvent(DomainEvent):
    guild_id: DiscordSnowflake


# === Inbound: transport ===


class TransportEnded(GuildEvent):
    """The transport finished playing the resource started with ``play_token``."""

    play_token: NonNegativeInt = 0


class TransportProgressed(GuildEvent):
    elapsed_ms: DurationMs


# === Inbound: remote control ===


class RemoteControlRequested(GuildEvent):
    command: ControlCommand
    track_number: TrackNumber | None = None
    tracks: list[Track] = Field(default_factory=list)


# === Outbound: transport requests ===


class TransportPlayRequested(GuildEvent):
    track: Track
    source_uri: NonEmptyStr
    # Echoed back in TransportEnded so a session can drop ends of older plays.
    play_token: NonNegativeInt = 0


class TransportStopRequested(GuildEvent):
    pass


class TransportPauseRequested(GuildEvent):
    pass


class TransportUnpauseRequested(GuildEvent):
    pass


# === Outbound: playstate telemetry ===


class PlaybackStarted(GuildEvent):
    track: Track


class PlaybackStopped(GuildEvent):
    pass


class PlaybackPaused(GuildEvent):
    pass


class PlaybackResumed(GuildEvent):
    pass
