"""Discord voice transport: plays what guild sessions ask for and reports back.

The transport subscribes to outbound transport requests on the event bus and
publishes ``TransportEnded`` / ``TransportProgressed`` for the sessions to
consume. Faults stay here; a missing voice client is logged and ignored.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Final

import discord

from discord_jellyfin_player.config.settings import PlaybackSettings
from discord_jellyfin_player.domain.music.events import (
    TransportEnded,
    TransportPauseRequested,
    TransportPlayRequested,
    TransportProgressed,
    TransportStopRequested,
    TransportUnpauseRequested,
)
from discord_jellyfin_player.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from discord_jellyfin_player.domain.shared.events import EventBus

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: Final[float] = 10.0
FRAME_LENGTH_MS: Final[int] = 20


class FrameCountingVolumeTransformer(discord.PCMVolumeTransformer):
    """Volume transformer that counts the 20 ms frames handed to the voice client."""

    def __init__(
        self, original: discord.AudioSource, volume: float = 1.0, *, play_token: int = 0
    ) -> None:
        super().__init__(original, volume=volume)
        self.frames = 0
        self.stopped_by_request = False
        self.play_token = play_token

    def read(self) -> bytes:
        data = super().read()
        if data:
            self.frames += 1
        return data

    @property
    def elapsed_ms(self) -> int:
        return self.frames * FRAME_LENGTH_MS


class DiscordVoiceTransport:
    def __init__(
        self,
        bot: discord.Client,
        event_bus: EventBus,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._bot = bot
        self._event_bus = event_bus
        self._settings = settings or PlaybackSettings()
        self._volume = self._settings.default_volume
        self._sources: dict[int, FrameCountingVolumeTransformer] = {}
        self._progress_task: asyncio.Task[None] | None = None
        self._attached = False

    # === Lifecycle ===

    def attach(self) -> None:
        if self._attached:
            return
        self._event_bus.subscribe(TransportPlayRequested, self._on_play_requested)
        self._event_bus.subscribe(TransportStopRequested, self._on_stop_requested)
        self._event_bus.subscribe(TransportPauseRequested, self._on_pause_requested)
        self._event_bus.subscribe(TransportUnpauseRequested, self._on_unpause_requested)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self._event_bus.unsubscribe(TransportPlayRequested, self._on_play_requested)
        self._event_bus.unsubscribe(TransportStopRequested, self._on_stop_requested)
        self._event_bus.unsubscribe(TransportPauseRequested, self._on_pause_requested)
        self._event_bus.unsubscribe(TransportUnpauseRequested, self._on_unpause_requested)
        self._attached = False

    def start(self) -> None:
        if self._progress_task is None or self._progress_task.done():
            self._progress_task = asyncio.create_task(self._progress_loop(), name="voice-progress")

    async def aclose(self) -> None:
        self.detach()
        task, self._progress_task = self._progress_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # === Voice connection ===

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    def current_source(self, guild_id: int) -> FrameCountingVolumeTransformer | None:
        return self._sources.get(guild_id)

    async def ensure_connected(self, channel: discord.VoiceChannel | discord.StageChannel) -> bool:
        """Connect to *channel*, moving there if already connected elsewhere."""
        vc = self._get_voice_client(channel.guild.id)
        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                if vc is None:
                    await channel.connect(self_deaf=True)
                elif vc.channel is None or vc.channel.id != channel.id:
                    await vc.move_to(channel)
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel.id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, channel.guild.id)
        return True

    async def disconnect(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        self.forget(guild_id)
        if vc is None:
            return False

        await vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    def forget(self, guild_id: int) -> None:
        """Drop the guild's current source without reporting it as ended."""
        source = self._sources.pop(guild_id, None)
        if source is not None:
            source.stopped_by_request = True

    # === Transport requests ===

    async def _on_play_requested(self, event: TransportPlayRequested) -> None:
        vc = self._get_voice_client(event.guild_id)
        if vc is None:
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, event.guild_id)
            return

        self._stop_current(event.guild_id, vc)

        before_options = ""
        if event.source_uri.startswith(("http://", "https://")):
            before_options = self._settings.ffmpeg_before_options

        try:
            source = FrameCountingVolumeTransformer(
                discord.FFmpegPCMAudio(
                    event.source_uri,
                    before_options=before_options or None,
                    options=self._settings.ffmpeg_options,
                ),
                volume=self._volume,
                play_token=event.play_token,
            )
            vc.play(source, after=self._make_after_callback(event.guild_id, source))
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return

        self._sources[event.guild_id] = source
        logger.info(LogTemplates.VOICE_PLAYING, event.track.name, event.guild_id)

    async def _on_stop_requested(self, event: TransportStopRequested) -> None:
        vc = self._get_voice_client(event.guild_id)
        if vc is None:
            self.forget(event.guild_id)
            return
        self._stop_current(event.guild_id, vc)

    async def _on_pause_requested(self, event: TransportPauseRequested) -> None:
        vc = self._get_voice_client(event.guild_id)
        if vc is not None and vc.is_playing():
            vc.pause()

    async def _on_unpause_requested(self, event: TransportUnpauseRequested) -> None:
        vc = self._get_voice_client(event.guild_id)
        if vc is not None and vc.is_paused():
            vc.resume()

    def _stop_current(self, guild_id: int, vc: discord.VoiceClient) -> None:
        self.forget(guild_id)
        if vc.is_playing() or vc.is_paused():
            vc.stop()

    # === Signals back to the sessions ===

    def _make_after_callback(
        self, guild_id: int, source: FrameCountingVolumeTransformer
    ) -> Callable[[Exception | None], None]:
        def after_callback(error: Exception | None = None) -> None:
            logger.debug(LogTemplates.VOICE_TRACK_ENDED, guild_id, error)
            if error:
                logger.warning(LogTemplates.VOICE_PLAYBACK_ERROR, guild_id, error)

            # Runs on the audio player thread.
            asyncio.run_coroutine_threadsafe(self._handle_source_end(guild_id, source), self._bot.loop)

        return after_callback

    async def _handle_source_end(self, guild_id: int, source: FrameCountingVolumeTransformer) -> None:
        if self._sources.get(guild_id) is source:
            del self._sources[guild_id]
        if source.stopped_by_request:
            return
        await self._event_bus.publish(TransportEnded(guild_id=guild_id, play_token=source.play_token))

    async def _progress_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.progress_interval_s)
            try:
                await self._publish_progress()
            except Exception:
                logger.exception(LogTemplates.VOICE_PROGRESS_ERROR)

    async def _publish_progress(self) -> None:
        for guild_id, source in list(self._sources.items()):
            vc = self._get_voice_client(guild_id)
            if vc is None or not vc.is_playing():
                continue
            await self._event_bus.publish(
                TransportProgressed(guild_id=guild_id, elapsed_ms=source.elapsed_ms)
            )
