"""Routes inbound transport and remote-control signals to guild sessions.

Handlers only post into a session's inbox and return; they never wait for a
reply, so a session publishing outbound events cannot block on its own input.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from ...domain.music.events import RemoteControlRequested, TransportEnded, TransportProgressed
from ...domain.shared.exceptions import UserActionError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class EventBridge:
    def __init__(self, *, registry: SessionRegistry, event_bus: EventBus) -> None:
        self._registry = registry
        self._event_bus = event_bus
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        if self._attached:
            return
        self._event_bus.subscribe(TransportEnded, self._on_transport_ended)
        self._event_bus.subscribe(TransportProgressed, self._on_transport_progressed)
        self._event_bus.subscribe(RemoteControlRequested, self._on_remote_control)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self._event_bus.unsubscribe(TransportEnded, self._on_transport_ended)
        self._event_bus.unsubscribe(TransportProgressed, self._on_transport_progressed)
        self._event_bus.unsubscribe(RemoteControlRequested, self._on_remote_control)
        self._attached = False

    async def _on_transport_ended(self, event: TransportEnded) -> None:
        session = self._registry.get(event.guild_id)
        if session is None:
            logger.debug(LogTemplates.BRIDGE_NO_SESSION, type(event).__name__, event.guild_id)
            return
        session.notify_ended(event.play_token)

    async def _on_transport_progressed(self, event: TransportProgressed) -> None:
        session = self._registry.get(event.guild_id)
        if session is None:
            logger.debug(LogTemplates.BRIDGE_NO_SESSION, type(event).__name__, event.guild_id)
            return
        session.notify_progress(event.elapsed_ms)

    async def _on_remote_control(self, event: RemoteControlRequested) -> None:
        # Remote control may be the first thing a guild ever hears, so sessions are created here.
        session = self._registry.get_or_create(event.guild_id)
        reply = session.submit(event.command, tracks=event.tracks, track_number=event.track_number)
        reply.add_done_callback(lambda fut: self._log_remote_outcome(event, fut))

    @staticmethod
    def _log_remote_outcome(event: RemoteControlRequested, reply: asyncio.Future[Any]) -> None:
        if reply.cancelled():
            return
        error = reply.exception()
        if error is None:
            return
        if isinstance(error, UserActionError):
            logger.info(LogTemplates.BRIDGE_REMOTE_REJECTED, event.command.value, event.guild_id, error.message)
        else:
            logger.error(LogTemplates.BRIDGE_REMOTE_REJECTED, event.command.value, event.guild_id, error)
