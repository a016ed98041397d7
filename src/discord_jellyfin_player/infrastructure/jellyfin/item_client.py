"""TrackLookup implementation backed by the Jellyfin ``/Items`` endpoints."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from discord_jellyfin_player.application.interfaces.track_lookup import TrackLookup
from discord_jellyfin_player.config.settings import JellyfinSettings
from discord_jellyfin_player.domain.music.entities import RemoteStreamTrack
from discord_jellyfin_player.domain.music.value_objects import MediaKind, SearchHint
from discord_jellyfin_player.domain.shared.messages import LogTemplates
from discord_jellyfin_player.infrastructure.jellyfin.models import (
    JellyfinItem,
    JellyfinItemsResponse,
)

logger = logging.getLogger(__name__)

ALBUM_TRACK_ORDER = "ParentIndexNumber,IndexNumber,SortName"


class JellyfinItemClient(TrackLookup):
    def __init__(self, client: httpx.AsyncClient, settings: JellyfinSettings | None = None) -> None:
        self._client = client
        self._settings = settings or JellyfinSettings()

    async def get_tracks_by_ids(self, item_ids: list[str]) -> list[RemoteStreamTrack]:
        if not item_ids:
            return []

        items = await self._fetch(
            "/Items", {"Ids": ",".join(item_ids), "IncludeItemTypes": MediaKind.AUDIO.value}
        )
        # Jellyfin does not promise to answer in request order.
        by_id = {item.id: item for item in items or []}
        return [self._to_track(by_id[item_id]) for item_id in item_ids if item_id in by_id]

    async def search(
        self, query: str, *, kinds: Sequence[MediaKind], limit: int = 20
    ) -> list[SearchHint]:
        query = query.strip()
        if not query or not kinds or limit <= 0:
            return []

        items = await self._fetch(
            "/Items",
            {
                "searchTerm": query,
                "IncludeItemTypes": ",".join(kind.value for kind in kinds),
                "Recursive": "true",
                "Limit": limit,
            },
        )
        hints = [item.to_search_hint() for item in items or []]
        return [hint for hint in hints if hint is not None]

    async def get_tracks_for_item(self, item_id: str) -> list[RemoteStreamTrack]:
        items = await self._fetch("/Items", {"Ids": item_id})
        if not items:
            return []

        item = items[0]
        match item.kind:
            case MediaKind.AUDIO:
                return [self._to_track(item)]
            case MediaKind.ALBUM:
                children = await self._fetch(
                    "/Items",
                    {
                        "ParentId": item.id,
                        "IncludeItemTypes": MediaKind.AUDIO.value,
                        "Recursive": "true",
                        "SortBy": ALBUM_TRACK_ORDER,
                    },
                )
            case MediaKind.PLAYLIST:
                children = await self._fetch(f"/Playlists/{item.id}/Items", {})
            case _:
                logger.warning(LogTemplates.JELLYFIN_UNSUPPORTED_ITEM, item.item_type, item.id)
                return []

        return [
            self._to_track(child) for child in children or [] if child.kind is MediaKind.AUDIO
        ]

    async def get_random_tracks(self, limit: int) -> list[RemoteStreamTrack]:
        if limit <= 0:
            return []

        items = await self._fetch(
            "/Items",
            {
                "IncludeItemTypes": MediaKind.AUDIO.value,
                "Recursive": "true",
                "SortBy": "Random",
                "Limit": limit,
            },
        )
        return [self._to_track(item) for item in items or []]

    def _to_track(self, item: JellyfinItem) -> RemoteStreamTrack:
        return item.to_track(self._settings.server_url)

    async def _fetch(self, path: str, params: dict[str, Any]) -> list[JellyfinItem] | None:
        """GET an items listing; ``None`` when the server or the payload fails."""
        if self._settings.user_id:
            params = {**params, "UserId": self._settings.user_id}

        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            payload = JellyfinItemsResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(LogTemplates.JELLYFIN_REQUEST_FAILED, path, e)
            return None

        return payload.items
