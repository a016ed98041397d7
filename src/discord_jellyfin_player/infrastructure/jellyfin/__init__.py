"""Jellyfin infrastructure - streaming URLs, item lookup, playstate and remote control."""

from discord_jellyfin_player.infrastructure.jellyfin.client import create_http_client
from discord_jellyfin_player.infrastructure.jellyfin.item_client import JellyfinItemClient
from discord_jellyfin_player.infrastructure.jellyfin.playstate_reporter import (
    JellyfinPlaystateReporter,
)
from discord_jellyfin_player.infrastructure.jellyfin.remote_control import JellyfinRemoteControl
from discord_jellyfin_player.infrastructure.jellyfin.stream_url_builder import (
    JellyfinStreamUrlBuilder,
)

__all__ = [
    "JellyfinItemClient",
    "JellyfinPlaystateReporter",
    "JellyfinRemoteControl",
    "JellyfinStreamUrlBuilder",
    "create_http_client",
]
