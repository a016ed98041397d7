"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import PlainSerializer, PlainValidator

from discord_jellyfin_player.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class TrackId:
    """Jellyfin item id or YouTube video id."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)


# Serializes as plain string in JSON, stores as TrackId in the model.
TrackIdField = Annotated[
    TrackId,
    PlainValidator(lambda v: TrackId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]


class SourceKind(Enum):
    """How a track becomes playable."""

    REMOTE_STREAM = "remote_stream"  # URL built against the media server
    DOWNLOADABLE = "downloadable"  # fetched and converted to a local file first


class AcquisitionState(Enum):
    """Acquisition state of a downloadable track.

    State transitions:
    - NOT_STARTED -> ACQUIRING
    - ACQUIRING -> READY
    - ACQUIRING -> FAILED
    READY and FAILED are terminal.
    """

    NOT_STARTED = "not_started"
    ACQUIRING = "acquiring"
    READY = "ready"
    FAILED = "failed"

    def can_transition_to(self, target: AcquisitionState) -> bool:
        valid_transitions = {
            AcquisitionState.NOT_STARTED: {AcquisitionState.ACQUIRING},
            AcquisitionState.ACQUIRING: {AcquisitionState.READY, AcquisitionState.FAILED},
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_terminal(self) -> bool:
        return self in {AcquisitionState.READY, AcquisitionState.FAILED}


class AcquisitionOutcome(Enum):
    """Result of asking the acquisition pipeline to make a track playable."""

    ALREADY_READY = "already_ready"
    STARTED = "started"
    ALREADY_IN_PROGRESS = "already_in_progress"
    FAILED = "failed"

    @property
    def is_pending(self) -> bool:
        return self in {AcquisitionOutcome.STARTED, AcquisitionOutcome.ALREADY_IN_PROGRESS}


class PlaybackState(Enum):
    """Session playback state derived from the ``playing`` / ``paused`` flags.

    - playing=False, paused=False -> IDLE
    - playing=True,  paused=False -> PLAYING
    - playing=True,  paused=True  -> PAUSED
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    @classmethod
    def from_flags(cls, playing: bool, paused: bool) -> PlaybackState:
        if not playing:
            return cls.IDLE
        return cls.PAUSED if paused else cls.PLAYING

    @property
    def is_active(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.PAUSED}


class ControlCommand(Enum):
    """Remote-control verbs routed to a guild session."""

    ENQUEUE = "enqueue"
    ENQUEUE_NEXT = "enqueue_next"
    NEXT = "next"
    PREVIOUS = "previous"
    STOP = "stop"
    PAUSE = "pause"
    UNPAUSE = "unpause"
    TOGGLE_PAUSE = "toggle_pause"
    GOTO = "goto"
    REMOVE = "remove"

    @property
    def needs_track_number(self) -> bool:
        return self in {ControlCommand.GOTO, ControlCommand.REMOVE}

    @property
    def carries_tracks(self) -> bool:
        return self in {ControlCommand.ENQUEUE, ControlCommand.ENQUEUE_NEXT}


class MediaKind(Enum):
    """Media-server item types a search can return; values are Jellyfin item types."""

    AUDIO = "Audio"
    ALBUM = "MusicAlbum"
    PLAYLIST = "Playlist"


@dataclass(frozen=True)
class SearchHint:
    """One media-server search result, expandable into tracks by its id."""

    id: str
    name: str
    kind: MediaKind
    artist: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.artist})" if self.artist else self.name
