"""Port interfaces implemented by the infrastructure layer."""

from discord_jellyfin_player.application.interfaces.acquisition_backend import (
    AcquisitionBackend,
)
from discord_jellyfin_player.application.interfaces.stream_url_builder import StreamUrlBuilder
from discord_jellyfin_player.application.interfaces.track_lookup import TrackLookup

__all__ = [
    "AcquisitionBackend",
    "StreamUrlBuilder",
    "TrackLookup",
]
