# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Event bus, constrained types and exceptions
- music/: Tracks, queue, playback state and signals
"""

from discord_jellyfin_player.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
