"""Builds Jellyfin universal-audio stream URLs for remote-stream tracks."""

from __future__ import annotations

import logging
from typing import Final

import httpx

from discord_jellyfin_player.application.interfaces.stream_url_builder import StreamUrlBuilder
from discord_jellyfin_player.config.settings import JellyfinSettings
from discord_jellyfin_player.domain.music.value_objects import TrackId
from discord_jellyfin_player.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

STREAM_CONTAINER: Final[str] = "ogg,opus"
STREAM_AUDIO_CODEC: Final[str] = "opus"
TRANSCODING_CONTAINER: Final[str] = "ts"
TRANSCODING_PROTOCOL: Final[str] = "hls"


class JellyfinStreamUrlBuilder(StreamUrlBuilder):
    def __init__(self, settings: JellyfinSettings | None = None) -> None:
        self._settings = settings or JellyfinSettings()

    def build_stream_url(self, track_id: TrackId | str) -> str:
        bitrate = self._settings.max_streaming_bitrate
        logger.debug(LogTemplates.JELLYFIN_STREAM_URL, track_id, bitrate)

        url = httpx.URL(
            f"{self._settings.server_url}/Audio/{track_id}/universal",
            params={
                "UserId": self._settings.user_id,
                "DeviceId": self._settings.device_id,
                "MaxStreamingBitrate": str(bitrate),
                "Container": STREAM_CONTAINER,
                "AudioCodec": STREAM_AUDIO_CODEC,
                "TranscodingContainer": TRANSCODING_CONTAINER,
                "TranscodingProtocol": TRANSCODING_PROTOCOL,
                "api_key": self._settings.api_key.get_secret_value(),
            },
        )
        return str(url)
