"""Arena of playback sessions keyed by guild id."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.shared.events import get_event_bus
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .playback_session import DEFAULT_MAX_POLLS, DEFAULT_POLL_INTERVAL_S, PlaybackSession

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from .acquisition_service import AcquisitionPipeline

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates sessions on first touch and keeps them for the life of the process.

    A guild leaving voice only resets its session; the actor stays in memory
    so reconnecting does not pay for a new one.
    """

    def __init__(
        self,
        *,
        pipeline: AcquisitionPipeline,
        event_bus: EventBus | None = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        max_polls: int = DEFAULT_MAX_POLLS,
    ) -> None:
        self._pipeline = pipeline
        self._event_bus = event_bus or get_event_bus()
        self._poll_interval_s = poll_interval_s
        self._max_polls = max_polls
        self._sessions: dict[DiscordSnowflake, PlaybackSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def get(self, guild_id: DiscordSnowflake) -> PlaybackSession | None:
        return self._sessions.get(guild_id)

    def get_or_create(self, guild_id: DiscordSnowflake) -> PlaybackSession:
        session = self._sessions.get(guild_id)
        if session is None:
            session = PlaybackSession(
                guild_id,
                pipeline=self._pipeline,
                event_bus=self._event_bus,
                poll_interval_s=self._poll_interval_s,
                max_polls=self._max_polls,
            )
            self._sessions[guild_id] = session
            logger.info(LogTemplates.SESSION_CREATED, guild_id)

        session.start()
        return session

    async def reset(self, guild_id: DiscordSnowflake) -> None:
        session = self._sessions.get(guild_id)
        if session is not None:
            await session.reset()

    async def aclose(self) -> None:
        """Stop every session actor."""
        await asyncio.gather(*(session.aclose() for session in self._sessions.values()))
