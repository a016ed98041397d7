"""Voice channel guard functions for Discord cogs."""

from discord_jellyfin_player.infrastructure.discord.guards.voice_guards import (
    ensure_voice,
    get_member,
    get_voice_channel,
    send_ephemeral,
)

__all__ = [
    "ensure_voice",
    "get_member",
    "get_voice_channel",
    "send_ephemeral",
]
