import asyncio

import pytest

from discord_jellyfin_player.application.interfaces.acquisition_backend import AcquisitionBackend
from discord_jellyfin_player.application.interfaces.stream_url_builder import StreamUrlBuilder
from discord_jellyfin_player.application.services.acquisition_service import AcquisitionPipeline
from discord_jellyfin_player.domain.music.entities import DownloadableTrack, RemoteStreamTrack
from discord_jellyfin_player.domain.music.events import (
    PlaybackPaused,
    PlaybackResumed,
    PlaybackStarted,
    PlaybackStopped,
    TransportPauseRequested,
    TransportPlayRequested,
    TransportStopRequested,
    TransportUnpauseRequested,
)
from discord_jellyfin_player.domain.music.value_objects import TrackId
from discord_jellyfin_player.domain.shared.events import EventBus, reset_event_bus
from discord_jellyfin_player.domain.shared.exceptions import AcquisitionError

OUTBOUND_EVENTS = (
    TransportPlayRequested,
    TransportStopRequested,
    TransportPauseRequested,
    TransportUnpauseRequested,
    PlaybackStarted,
    PlaybackStopped,
    PlaybackPaused,
    PlaybackResumed,
)


# ============================================================================
# Domain Entity Helpers
# ============================================================================


def make_remote_track(
    track_id: str = "jf-1", *, name: str | None = None, duration_ms: int = 180_000
) -> RemoteStreamTrack:
    return RemoteStreamTrack(
        id=TrackId(track_id),
        name=name or f"Track {track_id}",
        artist="Test Artist",
        album="Test Album",
        duration_ms=duration_ms,
    )


def make_downloadable_track(
    track_id: str = "yt-1", *, name: str | None = None, duration_ms: int = 240_000
) -> DownloadableTrack:
    return DownloadableTrack(
        id=TrackId(track_id),
        name=name or f"Video {track_id}",
        artist="Test Uploader",
        duration_ms=duration_ms,
        locator=f"https://www.youtube.com/watch?v={track_id}",
    )


@pytest.fixture
def remote_track():
    return make_remote_track()


@pytest.fixture
def downloadable_track():
    return make_downloadable_track()


# ============================================================================
# Event Bus Fixtures
# ============================================================================


@pytest.fixture
def event_bus():
    """Fresh event bus; the global singleton is reset afterwards."""
    bus = EventBus()
    yield bus
    bus.clear()
    reset_event_bus()


@pytest.fixture
def recorded_events(event_bus):
    """List capturing every outbound session event published on ``event_bus``."""
    events = []

    async def record(event):
        events.append(event)

    for event_type in OUTBOUND_EVENTS:
        event_bus.subscribe(event_type, record)
    return events


# ============================================================================
# Acquisition Fixtures
# ============================================================================


class FakeBackend(AcquisitionBackend):
    """Backend whose downloads finish only when a test releases them."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.failures: set[str] = set()
        self.auto_release = False
        self._gates: dict[str, asyncio.Event] = {}

    def gate(self, track_id: str) -> asyncio.Event:
        return self._gates.setdefault(track_id, asyncio.Event())

    def release(self, track_id: str) -> None:
        self.gate(track_id).set()

    async def acquire(self, track: DownloadableTrack) -> str:
        track_id = str(track.id)
        self.calls.append(track_id)
        if not self.auto_release:
            await self.gate(track_id).wait()
        if track_id in self.failures:
            raise AcquisitionError(track_id, "boom")
        return f"/cache/yt_{track_id}.mp3"


class FakeStreamUrlBuilder(StreamUrlBuilder):
    def build_stream_url(self, track_id: TrackId) -> str:
        return f"https://jellyfin.test/Audio/{track_id}/universal"


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def pipeline(fake_backend):
    return AcquisitionPipeline(
        backend=fake_backend,
        stream_url_builder=FakeStreamUrlBuilder(),
        prefetch_window_ms=30_000,
    )
