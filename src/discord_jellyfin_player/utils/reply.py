"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.music.entities import Track


@cache
def format_duration(milliseconds: int | None) -> str:
    if milliseconds is None or milliseconds <= 0:
        return "–"

    total_seconds = milliseconds // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def format_track_line(number: int, track: Track, *, active: bool = False) -> str:
    """One queue line: ``3. Title by Artist (4:05)``, bolded when active."""
    line = f"{number}. {truncate(track.display_name)} ({format_duration(track.duration_ms)})"
    return f"**{line}**" if active else line


def is_http_url(value: str) -> bool:
    return value.strip().lower().startswith(("http://", "https://"))
