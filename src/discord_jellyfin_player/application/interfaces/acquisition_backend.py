"""Port interface for fetching downloadable tracks into local files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.music.entities import DownloadableTrack


class AcquisitionBackend(ABC):
    """Interface for turning a downloadable track into a playable local file."""

    @abstractmethod
    async def acquire(self, track: "DownloadableTrack") -> str:
        """Fetch and convert the track, returning the local file path.

        Must be idempotent: an artifact that already exists is returned without
        fetching again. Raises ``AcquisitionError`` on failure.
        """
        ...
