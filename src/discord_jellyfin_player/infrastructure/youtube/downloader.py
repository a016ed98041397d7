"""AcquisitionBackend implementation that downloads YouTube audio with yt-dlp."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError
from yt_dlp import YoutubeDL
from yt_dlp.utils import YoutubeDLError

from discord_jellyfin_player.application.interfaces.acquisition_backend import AcquisitionBackend
from discord_jellyfin_player.config.settings import DownloadSettings
from discord_jellyfin_player.domain.music.entities import DownloadableTrack
from discord_jellyfin_player.domain.shared.exceptions import AcquisitionError
from discord_jellyfin_player.domain.shared.messages import ErrorMessages, LogTemplates
from discord_jellyfin_player.infrastructure.youtube.models import (
    OUTPUT_PREFIX,
    ExtractAudioPostprocessor,
    YtDlpDownloadOpts,
    YtDlpVideoInfo,
)

logger = logging.getLogger(__name__)


class YtDlpDownloadBackend(AcquisitionBackend):
    """Downloads a track's audio into the cache directory and converts it.

    The artifact for a track always lands at ``{cache_dir}/yt_{id}.{format}``,
    so a file left over from an earlier run is reused without downloading.
    Concurrent requests for the same artifact wait on a single download.
    """

    def __init__(self, settings: DownloadSettings | None = None) -> None:
        self._settings = settings or DownloadSettings()
        self._cache_dir = Path(self._settings.cache_dir)
        self._in_flight: dict[Path, asyncio.Task[None]] = {}
        self._base_opts = YtDlpDownloadOpts(
            format=self._settings.ytdlp_format,
            postprocessors=[
                ExtractAudioPostprocessor(
                    preferredcodec=self._settings.audio_format,
                    # yt-dlp wants the bitrate without its unit suffix
                    preferredquality=self._settings.audio_quality.rstrip("kK"),
                )
            ],
        )

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def target_path(self, track: DownloadableTrack) -> Path:
        return self._cache_dir / f"{OUTPUT_PREFIX}{track.id}.{self._settings.audio_format}"

    def _get_opts(self, track: DownloadableTrack) -> YtDlpDownloadOpts:
        outtmpl = str(self._cache_dir / f"{OUTPUT_PREFIX}{track.id}.%(ext)s")
        return self._base_opts.model_copy(update={"outtmpl": outtmpl})

    async def acquire(self, track: DownloadableTrack) -> str:
        target = self.target_path(track)
        if target.exists():
            logger.info(LogTemplates.ACQUISITION_CACHE_HIT, track.name, target)
            return str(target)

        # Tracks for the same video share one artifact, so they share one download.
        download = self._in_flight.get(target)
        if download is None:
            download = asyncio.create_task(self._download(track, target), name=f"ytdlp-{track.id}")
            self._in_flight[target] = download
            download.add_done_callback(lambda _: self._in_flight.pop(target, None))
        else:
            logger.info(LogTemplates.YTDLP_JOINING_DOWNLOAD, track.locator, target)

        await asyncio.shield(download)
        return str(target)

    async def _download(self, track: DownloadableTrack, target: Path) -> None:
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info(LogTemplates.YTDLP_DOWNLOADING, track.locator, target)

        try:
            await asyncio.to_thread(self._download_sync, track)
        except YoutubeDLError as e:
            logger.warning(LogTemplates.YTDLP_DOWNLOAD_FAILED, track.locator, e)
            raise AcquisitionError(str(track.id), str(e)) from e

        if not target.exists():
            raise AcquisitionError(
                str(track.id), ErrorMessages.DOWNLOAD_OUTPUT_MISSING.format(path=target)
            )

    def _download_sync(self, track: DownloadableTrack) -> None:
        opts = self._get_opts(track)
        with YoutubeDL(params=cast(Any, opts.model_dump())) as ydl:
            ydl.download([track.locator])

    async def lookup(self, url: str) -> DownloadableTrack | None:
        """Build a not-yet-downloaded track from a video URL without fetching audio."""
        try:
            info = await asyncio.to_thread(self._extract_info_sync, url)
        except YoutubeDLError as e:
            logger.warning(LogTemplates.YTDLP_LOOKUP_FAILED, url, e)
            return None

        if info is None:
            return None
        return info.to_track(url)

    def _extract_info_sync(self, url: str) -> YtDlpVideoInfo | None:
        params = self._base_opts.model_dump(exclude={"postprocessors", "outtmpl"})
        with YoutubeDL(params=cast(Any, params)) as ydl:
            data = ydl.extract_info(url, download=False)

        if not isinstance(data, dict):
            return None
        try:
            return YtDlpVideoInfo.model_validate(data)
        except ValidationError as e:
            logger.warning(LogTemplates.YTDLP_LOOKUP_FAILED, url, e)
            return None
