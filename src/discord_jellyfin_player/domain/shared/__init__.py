"""
Shared Domain Kernel

Contains the event bus, constrained types and exceptions shared across the domain.
"""

from discord_jellyfin_player.domain.shared.events import DomainEvent, EventBus, get_event_bus
from discord_jellyfin_player.domain.shared.exceptions import (
    AcquisitionError,
    DomainError,
    InvalidOperationError,
    InvalidTrackNumberError,
    NoNextTrackError,
    NoPreviousTrackError,
    NotPlayingError,
    UserActionError,
)

__all__ = [
    "DomainEvent",
    "EventBus",
    "get_event_bus",
    "DomainError",
    "InvalidOperationError",
    "UserActionError",
    "NoNextTrackError",
    "NoPreviousTrackError",
    "NotPlayingError",
    "InvalidTrackNumberError",
    "AcquisitionError",
]
