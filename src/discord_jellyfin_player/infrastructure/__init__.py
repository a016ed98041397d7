"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Discord (bot, cogs, voice transport)
- Jellyfin (HTTP client, stream URLs, playstate reporting, remote control)
- YouTube (yt-dlp download backend)
"""

from discord_jellyfin_player.infrastructure.discord.adapters.voice_transport import (
    DiscordVoiceTransport,
)
from discord_jellyfin_player.infrastructure.discord.bot import create_bot
from discord_jellyfin_player.infrastructure.youtube.downloader import YtDlpDownloadBackend

__all__ = [
    "create_bot",
    "DiscordVoiceTransport",
    "YtDlpDownloadBackend",
]
