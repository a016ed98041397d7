"""Per-guild Jellyfin session websockets.

Each guild the bot plays in shows up in Jellyfin as its own remote-controllable
device (``<device_id>-<guild_id>``). While the bot sits in a guild's voice
channel a background task keeps that device's ``/socket`` connection open,
reconnecting with exponential backoff, and hands every message it receives to
:class:`JellyfinRemoteControl`.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Final

import httpx
import websockets
from websockets.exceptions import WebSocketException

from discord_jellyfin_player.config.settings import JellyfinSettings
from discord_jellyfin_player.domain.shared.messages import LogTemplates
from discord_jellyfin_player.domain.shared.types import DiscordSnowflake
from discord_jellyfin_player.infrastructure.jellyfin.client import build_authorization_header

if TYPE_CHECKING:
    from discord_jellyfin_player.infrastructure.jellyfin.remote_control import (
        JellyfinRemoteControl,
    )

logger = logging.getLogger(__name__)

CAPABILITIES_PATH: Final[str] = "/Sessions/Capabilities/Full"
CAPABILITIES: Final[dict[str, Any]] = {
    "PlayableMediaTypes": ["Audio"],
    "SupportsMediaControl": True,
    "SupportedCommands": ["Play", "PlayState"],
}
KEEPALIVE_MESSAGE: Final[str] = json.dumps({"MessageType": "KeepAlive"})


class JellyfinSessionSockets:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        remote_control: JellyfinRemoteControl,
        settings: JellyfinSettings | None = None,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        self._client = client
        self._remote_control = remote_control
        self._settings = settings or JellyfinSettings()
        self._connect = connect or websockets.connect
        self._tasks: dict[DiscordSnowflake, asyncio.Task[None]] = {}

    def device_id_for(self, guild_id: DiscordSnowflake) -> str:
        return f"{self._settings.device_id}-{guild_id}"

    def socket_url(self, guild_id: DiscordSnowflake) -> str:
        url = httpx.URL(
            f"{self._settings.server_url}/socket",
            params={
                "api_key": self._settings.api_key.get_secret_value(),
                "deviceId": self.device_id_for(guild_id),
            },
        )
        return str(url.copy_with(scheme="wss" if url.scheme == "https" else "ws"))

    def is_active(self, guild_id: DiscordSnowflake) -> bool:
        task = self._tasks.get(guild_id)
        return task is not None and not task.done()

    def connect(self, guild_id: DiscordSnowflake) -> None:
        """Start the guild's socket loop unless it is already running."""
        if not self._settings.remote_control_enabled or self.is_active(guild_id):
            return

        self._tasks[guild_id] = asyncio.create_task(
            self._run(guild_id), name=f"jellyfin-socket-{guild_id}"
        )

    async def disconnect(self, guild_id: DiscordSnowflake) -> None:
        task = self._tasks.pop(guild_id, None)
        if task is None:
            return

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info(LogTemplates.JELLYFIN_SOCKET_CLOSED, guild_id)

    async def aclose(self) -> None:
        for guild_id in list(self._tasks):
            await self.disconnect(guild_id)

    async def _run(self, guild_id: DiscordSnowflake) -> None:
        url = self.socket_url(guild_id)
        backoff = self._settings.socket_reconnect_initial_s

        while True:
            try:
                async with self._connect(url, ping_interval=20, ping_timeout=10) as ws:
                    backoff = self._settings.socket_reconnect_initial_s
                    logger.info(
                        LogTemplates.JELLYFIN_SOCKET_CONNECTED,
                        guild_id,
                        self.device_id_for(guild_id),
                    )
                    await self._report_capabilities(guild_id)
                    await self._receive(guild_id, ws)
            except (OSError, WebSocketException) as e:
                logger.warning(LogTemplates.JELLYFIN_SOCKET_LOST, guild_id, e)

            logger.info(LogTemplates.JELLYFIN_SOCKET_RETRY, guild_id, backoff)
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self._settings.socket_reconnect_max_s)

    async def _receive(self, guild_id: DiscordSnowflake, ws: Any) -> None:
        keepalive = asyncio.create_task(self._keep_alive(ws))
        try:
            async for message in ws:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                await self._remote_control.handle_message(guild_id, message)
        finally:
            keepalive.cancel()
            with contextlib.suppress(asyncio.CancelledError, OSError, WebSocketException):
                await keepalive

    async def _keep_alive(self, ws: Any) -> None:
        while True:
            await asyncio.sleep(self._settings.keepalive_interval_s)
            await ws.send(KEEPALIVE_MESSAGE)
            logger.debug(LogTemplates.JELLYFIN_KEEPALIVE_SENT)

    async def _report_capabilities(self, guild_id: DiscordSnowflake) -> None:
        """Advertise the guild's device as remote-controllable; failures are logged."""
        headers = {
            "Authorization": build_authorization_header(
                self._settings, self.device_id_for(guild_id)
            )
        }
        try:
            response = await self._client.post(
                CAPABILITIES_PATH, json=CAPABILITIES, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(LogTemplates.JELLYFIN_CAPABILITIES_FAILED, guild_id, e)
