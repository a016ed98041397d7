"""Translates Jellyfin session websocket messages into remote-control requests.

Connections are owned by :class:`JellyfinSessionSockets`; this class only
interprets the messages it is handed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

from pydantic import ValidationError

from discord_jellyfin_player.domain.music.events import RemoteControlRequested
from discord_jellyfin_player.domain.music.value_objects import ControlCommand
from discord_jellyfin_player.domain.shared.messages import LogTemplates
from discord_jellyfin_player.domain.shared.types import DiscordSnowflake
from discord_jellyfin_player.infrastructure.jellyfin.models import (
    PlayRequest,
    PlaystateRequest,
    SessionMessage,
)

if TYPE_CHECKING:
    from discord_jellyfin_player.application.interfaces.track_lookup import TrackLookup
    from discord_jellyfin_player.domain.shared.events import EventBus

logger = logging.getLogger(__name__)

KEEPALIVE_TYPES: Final[frozenset[str]] = frozenset({"KeepAlive", "ForceKeepAlive"})

PLAY_COMMANDS: Final[dict[str, ControlCommand]] = {
    "PlayNow": ControlCommand.ENQUEUE,
    "PlayLast": ControlCommand.ENQUEUE,
    "PlayNext": ControlCommand.ENQUEUE_NEXT,
}

PLAYSTATE_COMMANDS: Final[dict[str, ControlCommand]] = {
    "PlayPause": ControlCommand.TOGGLE_PAUSE,
    "Pause": ControlCommand.PAUSE,
    "Unpause": ControlCommand.UNPAUSE,
    "Stop": ControlCommand.STOP,
    "NextTrack": ControlCommand.NEXT,
    "PreviousTrack": ControlCommand.PREVIOUS,
}


class JellyfinRemoteControl:
    def __init__(self, *, track_lookup: TrackLookup, event_bus: EventBus) -> None:
        self._track_lookup = track_lookup
        self._event_bus = event_bus

    async def handle_message(self, guild_id: DiscordSnowflake, message: str | dict[str, Any]) -> None:
        """Handle one decoded (or raw JSON) session message for a guild."""
        try:
            if isinstance(message, str):
                parsed = SessionMessage.model_validate_json(message)
            else:
                parsed = SessionMessage.model_validate(message)
        except ValidationError as e:
            logger.warning(LogTemplates.JELLYFIN_UNKNOWN_MESSAGE, e)
            return

        match parsed.message_type:
            case message_type if message_type in KEEPALIVE_TYPES:
                logger.debug(LogTemplates.JELLYFIN_KEEPALIVE, message_type)
            case "Play":
                await self._handle_play(guild_id, parsed.data)
            case "Playstate":
                await self._handle_playstate(guild_id, parsed.data)
            case message_type:
                logger.warning(LogTemplates.JELLYFIN_UNKNOWN_MESSAGE, message_type)

    async def _handle_play(self, guild_id: DiscordSnowflake, data: Any) -> None:
        try:
            request = PlayRequest.model_validate(data or {})
        except ValidationError as e:
            logger.warning(LogTemplates.JELLYFIN_UNKNOWN_MESSAGE, e)
            return

        command = PLAY_COMMANDS.get(request.play_command)
        if command is None:
            logger.warning(LogTemplates.JELLYFIN_UNKNOWN_PLAYSTATE, request.play_command)
            return

        item_ids = request.selection()
        logger.info(LogTemplates.JELLYFIN_REMOTE_PLAY, len(item_ids))
        tracks = await self._track_lookup.get_tracks_by_ids(item_ids)
        if not tracks:
            return

        await self._event_bus.publish(
            RemoteControlRequested(guild_id=guild_id, command=command, tracks=list(tracks))
        )

    async def _handle_playstate(self, guild_id: DiscordSnowflake, data: Any) -> None:
        try:
            request = PlaystateRequest.model_validate(data or {})
        except ValidationError as e:
            logger.warning(LogTemplates.JELLYFIN_UNKNOWN_MESSAGE, e)
            return

        command = PLAYSTATE_COMMANDS.get(request.command)
        if command is None:
            logger.warning(LogTemplates.JELLYFIN_UNKNOWN_PLAYSTATE, request.command)
            return

        await self._event_bus.publish(RemoteControlRequested(guild_id=guild_id, command=command))
