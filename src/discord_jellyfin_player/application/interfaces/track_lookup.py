"""Port interface for looking up media-server items as tracks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import RemoteStreamTrack
    from ...domain.music.value_objects import MediaKind, SearchHint


class TrackLookup(ABC):
    """Interface for searching the media server and turning its items into tracks.

    Lookups never raise for server or transport failures; they log and return
    an empty list so callers can reply "nothing found".
    """

    @abstractmethod
    async def get_tracks_by_ids(self, item_ids: list[str]) -> list["RemoteStreamTrack"]:
        """Return tracks for the given ids, in request order, skipping unknown ids."""
        ...

    @abstractmethod
    async def search(
        self, query: str, *, kinds: Sequence["MediaKind"], limit: int = 20
    ) -> list["SearchHint"]:
        """Search items of the given kinds by name, best match first."""
        ...

    @abstractmethod
    async def get_tracks_for_item(self, item_id: str) -> list["RemoteStreamTrack"]:
        """Expand an item into tracks: a song, an album's songs, or a playlist's entries."""
        ...

    @abstractmethod
    async def get_random_tracks(self, limit: int) -> list["RemoteStreamTrack"]:
        """Return up to *limit* random songs from the library."""
        ...
