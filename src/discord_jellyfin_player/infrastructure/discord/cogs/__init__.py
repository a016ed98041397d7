"""Discord cogs - command handlers."""

from discord_jellyfin_player.infrastructure.discord.cogs.playback_cog import PlaybackCog

__all__ = [
    "PlaybackCog",
]
