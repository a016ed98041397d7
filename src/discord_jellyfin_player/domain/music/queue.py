"""Ordered per-guild play queue with a single active cursor."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from discord_jellyfin_player.domain.music.entities import Track

NO_ACTIVE_TRACK = -1


class PlayQueue:
    """Ordered sequence of tracks plus an ``active_index`` cursor.

    ``active_index`` is ``-1`` when nothing is active, otherwise it points into
    the sequence. Track numbers in the public API are 1-based. Expected edge
    conditions (empty queue, out of range numbers) return ``False`` / ``None``
    rather than raising.

    The queue is not thread- or task-safe; its owning session serializes access.
    """

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._tracks: list[Track] = list(tracks)
        self.active_index: int = NO_ACTIVE_TRACK

    def __len__(self) -> int:
        return len(self._tracks)

    def __repr__(self) -> str:
        return f"PlayQueue(length={len(self._tracks)}, active_index={self.active_index})"

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def total_duration_ms(self) -> int:
        return sum(track.duration_ms for track in self._tracks)

    def _max_index(self) -> int:
        return len(self._tracks) - 1

    def enqueue_append(self, tracks: Iterable[Track]) -> int:
        """Append tracks to the end and return the new length (0 on empty input)."""
        new_tracks = list(tracks)
        if not new_tracks:
            return 0

        self._tracks.extend(new_tracks)
        return len(self._tracks)

    def enqueue_next(self, tracks: Iterable[Track]) -> int:
        """Insert tracks right after the active one (at the head when none is active)."""
        new_tracks = list(tracks)
        if not new_tracks:
            return 0

        insert_at = self.active_index + 1
        self._tracks[insert_at:insert_at] = new_tracks
        return len(self._tracks)

    def remove_at(self, track_number: int) -> bool:
        """Remove the track at a 1-based position; the active track cannot be removed.

        Removing a track positioned before the active one shifts the cursor so
        the same track stays active.
        """
        if not self._tracks:
            return False

        index = track_number - 1
        if index < 0 or index > self._max_index():
            return False

        if index == self.active_index:
            return False

        del self._tracks[index]
        if index < self.active_index:
            self.active_index -= 1
        return True

    def advance(self) -> bool:
        if self.active_index >= self._max_index():
            return False

        self.active_index += 1
        return True

    def retreat(self) -> bool:
        if self.active_index <= 0:
            return False

        self.active_index -= 1
        return True

    def jump_to(self, track_number: int) -> bool:
        if track_number < 1 or track_number > len(self._tracks):
            return False

        self.active_index = track_number - 1
        return True

    def active_track(self) -> Track | None:
        if self.active_index == NO_ACTIVE_TRACK or self.active_index > self._max_index():
            return None
        return self._tracks[self.active_index]

    def active_track_number(self) -> int:
        return self.active_index + 1

    def peek_next(self) -> Track | None:
        next_index = self.active_index + 1
        if next_index > self._max_index():
            return None
        return self._tracks[next_index]

    def upcoming(self) -> tuple[Track, ...]:
        """Tracks queued after the active one."""
        return tuple(self._tracks[self.active_index + 1 :])

    def clear(self) -> None:
        self.active_index = NO_ACTIVE_TRACK
        self._tracks = []
