"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the event bus, guild sessions, Jellyfin clients,
the yt-dlp downloader, the Jellyfin session sockets and the Discord voice
transport.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    import httpx
    from discord.ext.commands import Bot

    from ..application.services.acquisition_service import AcquisitionPipeline
    from ..application.services.event_bridge import EventBridge
    from ..application.services.session_registry import SessionRegistry
    from ..domain.shared.events import EventBus
    from ..infrastructure.discord.adapters.voice_transport import DiscordVoiceTransport
    from ..infrastructure.jellyfin.item_client import JellyfinItemClient
    from ..infrastructure.jellyfin.playstate_reporter import JellyfinPlaystateReporter
    from ..infrastructure.jellyfin.remote_control import JellyfinRemoteControl
    from ..infrastructure.jellyfin.session_socket import JellyfinSessionSockets
    from ..infrastructure.jellyfin.stream_url_builder import JellyfinStreamUrlBuilder
    from ..infrastructure.youtube.downloader import YtDlpDownloadBackend
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Messaging
    _event_bus: EventBus | None = None

    # Infrastructure adapters
    _http_client: httpx.AsyncClient | None = None
    _stream_url_builder: JellyfinStreamUrlBuilder | None = None
    _item_client: JellyfinItemClient | None = None
    _download_backend: YtDlpDownloadBackend | None = None
    _voice_transport: DiscordVoiceTransport | None = None

    # Application services
    _acquisition_pipeline: AcquisitionPipeline | None = None
    _session_registry: SessionRegistry | None = None
    _event_bridge: EventBridge | None = None

    # Event subscribers
    _playstate_reporter: JellyfinPlaystateReporter | None = None
    _remote_control: JellyfinRemoteControl | None = None
    _session_sockets: JellyfinSessionSockets | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Messaging ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import get_event_bus

            self._event_bus = get_event_bus()
        return self._event_bus

    # === Infrastructure Adapters ===

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get the shared Jellyfin HTTP client."""
        if self._http_client is None:
            from ..infrastructure.jellyfin.client import create_http_client

            self._http_client = create_http_client(self.settings.jellyfin)
        return self._http_client

    @property
    def stream_url_builder(self) -> JellyfinStreamUrlBuilder:
        if self._stream_url_builder is None:
            from ..infrastructure.jellyfin.stream_url_builder import JellyfinStreamUrlBuilder

            self._stream_url_builder = JellyfinStreamUrlBuilder(self.settings.jellyfin)
        return self._stream_url_builder

    @property
    def item_client(self) -> JellyfinItemClient:
        if self._item_client is None:
            from ..infrastructure.jellyfin.item_client import JellyfinItemClient

            self._item_client = JellyfinItemClient(self.http_client, self.settings.jellyfin)
        return self._item_client

    @property
    def download_backend(self) -> YtDlpDownloadBackend:
        if self._download_backend is None:
            from ..infrastructure.youtube.downloader import YtDlpDownloadBackend

            self._download_backend = YtDlpDownloadBackend(self.settings.download)
        return self._download_backend

    @property
    def voice_transport(self) -> DiscordVoiceTransport:
        """Get the voice transport (requires the bot)."""
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_transport import DiscordVoiceTransport

            self._voice_transport = DiscordVoiceTransport(
                self.bot, self.event_bus, self.settings.playback
            )
        return self._voice_transport

    # === Application Services ===

    @property
    def acquisition_pipeline(self) -> AcquisitionPipeline:
        if self._acquisition_pipeline is None:
            from ..application.services.acquisition_service import AcquisitionPipeline

            self._acquisition_pipeline = AcquisitionPipeline(
                backend=self.download_backend,
                stream_url_builder=self.stream_url_builder,
                prefetch_window_ms=self.settings.playback.prefetch_window_ms,
            )
        return self._acquisition_pipeline

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(
                pipeline=self.acquisition_pipeline,
                event_bus=self.event_bus,
                poll_interval_s=self.settings.playback.acquisition_poll_interval_s,
                max_polls=self.settings.playback.acquisition_max_polls,
            )
        return self._session_registry

    @property
    def event_bridge(self) -> EventBridge:
        if self._event_bridge is None:
            from ..application.services.event_bridge import EventBridge

            self._event_bridge = EventBridge(
                registry=self.session_registry, event_bus=self.event_bus
            )
        return self._event_bridge

    # === Event Subscribers ===

    @property
    def playstate_reporter(self) -> JellyfinPlaystateReporter:
        if self._playstate_reporter is None:
            from ..infrastructure.jellyfin.playstate_reporter import JellyfinPlaystateReporter

            self._playstate_reporter = JellyfinPlaystateReporter(
                client=self.http_client,
                event_bus=self.event_bus,
                settings=self.settings.jellyfin,
            )
        return self._playstate_reporter

    @property
    def remote_control(self) -> JellyfinRemoteControl:
        if self._remote_control is None:
            from ..infrastructure.jellyfin.remote_control import JellyfinRemoteControl

            self._remote_control = JellyfinRemoteControl(
                track_lookup=self.item_client, event_bus=self.event_bus
            )
        return self._remote_control

    @property
    def session_sockets(self) -> JellyfinSessionSockets:
        """Get the per-guild Jellyfin session sockets feeding remote control."""
        if self._session_sockets is None:
            from ..infrastructure.jellyfin.session_socket import JellyfinSessionSockets

            self._session_sockets = JellyfinSessionSockets(
                client=self.http_client,
                remote_control=self.remote_control,
                settings=self.settings.jellyfin,
            )
        return self._session_sockets

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Attach every event subscriber and start the voice transport.

        Jellyfin session sockets are not opened here; the bot opens one per
        guild when it joins that guild's voice channel.
        """
        self.event_bridge.attach()
        self.playstate_reporter.attach()

        transport = self.voice_transport
        transport.attach()
        transport.start()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        if self._session_sockets is not None:
            await self._session_sockets.aclose()

        if self._voice_transport is not None:
            await self._voice_transport.aclose()

        if self._event_bridge is not None:
            self._event_bridge.detach()

        if self._playstate_reporter is not None:
            self._playstate_reporter.detach()

        if self._session_registry is not None:
            await self._session_registry.aclose()

        if self._acquisition_pipeline is not None:
            await self._acquisition_pipeline.aclose()

        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
