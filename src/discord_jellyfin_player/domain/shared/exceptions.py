"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


# === User action errors ===
# Surfaced synchronously to whoever issued the command, never retried.


class UserActionError(DomainError):
    """Raised when a user-issued playback command cannot be carried out."""

    def __init__(self, message: str, code: str = "USER_ACTION_ERROR") -> None:
        super().__init__(message, code=code)


class NoNextTrackError(UserActionError):
    def __init__(self, message: str = "There is no next track to play") -> None:
        super().__init__(message, code="NO_NEXT_TRACK")


class NoPreviousTrackError(UserActionError):
    def __init__(self, message: str = "There is no previous track to play") -> None:
        super().__init__(message, code="NO_PREVIOUS_TRACK")


class NotPlayingError(UserActionError):
    def __init__(self, message: str = "The player is not currently playing") -> None:
        super().__init__(message, code="NOT_PLAYING")


class InvalidTrackNumberError(UserActionError):
    def __init__(self, track_number: int, queue_length: int, message: str | None = None) -> None:
        msg = message or f"Track number {track_number} is not valid for a queue of {queue_length}"
        super().__init__(msg, code="INVALID_TRACK_NUMBER")
        self.track_number = track_number
        self.queue_length = queue_length


# === Acquisition errors ===


class AcquisitionError(DomainError):
    """Raised by an acquisition backend when a track cannot be fetched or converted."""

    def __init__(self, track_id: str, message: str | None = None) -> None:
        msg = message or f"Failed to acquire audio for track '{track_id}'"
        super().__init__(msg, code="ACQUISITION_FAILED")
        self.track_id = track_id
