"""Reports playback of Jellyfin tracks back to the server's session API.

Only remote-stream tracks are reported; downloaded tracks have no Jellyfin
item behind them. Reporting is best effort: failures are logged and never
reach the playback session.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import httpx

from discord_jellyfin_player.config.settings import JellyfinSettings
from discord_jellyfin_player.domain.music.entities import RemoteStreamTrack
from discord_jellyfin_player.domain.music.events import (
    PlaybackPaused,
    PlaybackResumed,
    PlaybackStarted,
    PlaybackStopped,
    TransportProgressed,
)
from discord_jellyfin_player.domain.shared.messages import LogTemplates
from discord_jellyfin_player.domain.shared.types import DiscordSnowflake
from discord_jellyfin_player.infrastructure.jellyfin.models import PlaybackReport

if TYPE_CHECKING:
    from discord_jellyfin_player.domain.shared.events import EventBus

logger = logging.getLogger(__name__)

PLAYING_PATH: Final[str] = "/Sessions/Playing"
PROGRESS_PATH: Final[str] = "/Sessions/Playing/Progress"
STOPPED_PATH: Final[str] = "/Sessions/Playing/Stopped"


@dataclass
class GuildPlaystate:
    """What the reporter last told Jellyfin about one guild."""

    track: RemoteStreamTrack | None = None
    progress_ms: int = 0
    paused: bool = False
    next_progress_report: float = 0.0


class JellyfinPlaystateReporter:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        event_bus: EventBus,
        settings: JellyfinSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._event_bus = event_bus
        self._settings = settings or JellyfinSettings()
        self._clock = clock
        self._states: dict[DiscordSnowflake, GuildPlaystate] = {}
        self._attached = False

    def state_for(self, guild_id: DiscordSnowflake) -> GuildPlaystate:
        return self._states.setdefault(guild_id, GuildPlaystate())

    def attach(self) -> None:
        if self._attached:
            return
        self._event_bus.subscribe(PlaybackStarted, self._on_started)
        self._event_bus.subscribe(PlaybackStopped, self._on_stopped)
        self._event_bus.subscribe(PlaybackPaused, self._on_paused)
        self._event_bus.subscribe(PlaybackResumed, self._on_resumed)
        self._event_bus.subscribe(TransportProgressed, self._on_progress)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self._event_bus.unsubscribe(PlaybackStarted, self._on_started)
        self._event_bus.unsubscribe(PlaybackStopped, self._on_stopped)
        self._event_bus.unsubscribe(PlaybackPaused, self._on_paused)
        self._event_bus.unsubscribe(PlaybackResumed, self._on_resumed)
        self._event_bus.unsubscribe(TransportProgressed, self._on_progress)
        self._attached = False

    # === Handlers ===

    async def _on_started(self, event: PlaybackStarted) -> None:
        state = self.state_for(event.guild_id)
        if state.track is not None:
            await self._report_stopped(event.guild_id, state)

        if not isinstance(event.track, RemoteStreamTrack):
            state.track = None
            return

        state.track = event.track
        state.progress_ms = 0
        state.paused = False
        state.next_progress_report = self._clock() + self._settings.progress_report_interval_s
        await self._report(
            "start", PLAYING_PATH, PlaybackReport.at(str(event.track.id), 0), event.guild_id
        )

    async def _on_stopped(self, event: PlaybackStopped) -> None:
        state = self.state_for(event.guild_id)
        if state.track is not None:
            await self._report_stopped(event.guild_id, state)

    async def _on_paused(self, event: PlaybackPaused) -> None:
        await self._report_pause_change(event.guild_id, paused=True)

    async def _on_resumed(self, event: PlaybackResumed) -> None:
        await self._report_pause_change(event.guild_id, paused=False)

    async def _on_progress(self, event: TransportProgressed) -> None:
        state = self.state_for(event.guild_id)
        if state.track is None:
            return

        state.progress_ms = event.elapsed_ms
        now = self._clock()
        if now < state.next_progress_report:
            return

        state.next_progress_report = now + self._settings.progress_report_interval_s
        report = PlaybackReport.at(str(state.track.id), state.progress_ms, is_paused=state.paused)
        await self._report("progress", PROGRESS_PATH, report, event.guild_id)

    # === Reporting ===

    async def _report_pause_change(self, guild_id: DiscordSnowflake, *, paused: bool) -> None:
        state = self.state_for(guild_id)
        state.paused = paused
        if state.track is None:
            return

        report = PlaybackReport.at(str(state.track.id), state.progress_ms, is_paused=paused)
        await self._report("pause" if paused else "resume", PROGRESS_PATH, report, guild_id)

    async def _report_stopped(self, guild_id: DiscordSnowflake, state: GuildPlaystate) -> None:
        track = state.track
        if track is None:
            return

        report = PlaybackReport.at(str(track.id), state.progress_ms)
        state.track = None
        state.progress_ms = 0
        state.paused = False
        await self._report("stop", STOPPED_PATH, report, guild_id)

    async def _report(
        self, kind: str, path: str, report: PlaybackReport, guild_id: DiscordSnowflake
    ) -> None:
        logger.debug(LogTemplates.JELLYFIN_REPORT, kind, report.item_id, guild_id)
        try:
            response = await self._client.post(path, json=report.to_payload())
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(LogTemplates.JELLYFIN_REPORT_FAILED, kind, e)
