"""YouTube infrastructure - yt-dlp audio downloads."""

from discord_jellyfin_player.infrastructure.youtube.downloader import YtDlpDownloadBackend
from discord_jellyfin_player.infrastructure.youtube.models import (
    ExtractAudioPostprocessor,
    YtDlpDownloadOpts,
    YtDlpVideoInfo,
)

__all__ = [
    "ExtractAudioPostprocessor",
    "YtDlpDownloadBackend",
    "YtDlpDownloadOpts",
    "YtDlpVideoInfo",
]
