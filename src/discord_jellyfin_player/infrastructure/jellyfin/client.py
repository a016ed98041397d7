"""Shared httpx client factory for the Jellyfin REST API."""

from __future__ import annotations

import httpx

from discord_jellyfin_player.config.settings import JellyfinSettings


def build_authorization_header(settings: JellyfinSettings, device_id: str | None = None) -> str:
    """Build the ``MediaBrowser`` authorization value Jellyfin expects.

    Jellyfin keys sessions by device id, so per-guild sessions pass their own.
    """
    fields = {
        "Client": settings.client_name,
        "Device": settings.client_name,
        "DeviceId": device_id or settings.device_id,
        "Version": settings.client_version,
        "Token": settings.api_key.get_secret_value(),
    }
    return "MediaBrowser " + ", ".join(f'{key}="{value}"' for key, value in fields.items())


def create_http_client(
    settings: JellyfinSettings, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.server_url,
        headers={"Authorization": build_authorization_header(settings)},
        timeout=settings.request_timeout_s,
        transport=transport,
    )
