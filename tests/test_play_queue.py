"""Unit tests for PlayQueue cursor and mutation rules."""

import pytest
from conftest import make_remote_track

from discord_jellyfin_player.domain.music.queue import NO_ACTIVE_TRACK, PlayQueue


def _queue(*ids: str) -> PlayQueue:
    return PlayQueue(make_remote_track(track_id) for track_id in ids)


def _ids(queue: PlayQueue) -> list[str]:
    return [str(track.id) for track in queue.tracks]


class TestEnqueue:
    def test_append_returns_new_length(self):
        queue = _queue("a")

        assert queue.enqueue_append([make_remote_track("b"), make_remote_track("c")]) == 3
        assert _ids(queue) == ["a", "b", "c"]

    def test_append_empty_is_noop(self):
        queue = _queue("a")

        assert queue.enqueue_append([]) == 0
        assert len(queue) == 1

    def test_enqueue_next_inserts_after_active(self):
        queue = _queue("a", "b", "c")
        queue.jump_to(2)

        queue.enqueue_next([make_remote_track("x"), make_remote_track("y")])

        assert _ids(queue) == ["a", "b", "x", "y", "c"]
        assert queue.active_index == 1

    def test_enqueue_next_without_active_inserts_at_head(self):
        queue = _queue("a")

        queue.enqueue_next([make_remote_track("x")])

        assert _ids(queue) == ["x", "a"]
        assert queue.active_index == NO_ACTIVE_TRACK


class TestCursor:
    def test_fresh_queue_has_no_active_track(self):
        queue = _queue("a", "b")

        assert queue.active_track() is None
        assert queue.active_track_number() == 0

    def test_advance_walks_to_the_end(self):
        queue = _queue("a", "b")

        assert queue.advance() is True
        assert queue.advance() is True
        assert queue.advance() is False
        assert queue.active_track_number() == 2

    def test_advance_on_empty_queue(self):
        assert PlayQueue().advance() is False

    def test_retreat_stops_at_first_track(self):
        queue = _queue("a", "b")
        queue.jump_to(2)

        assert queue.retreat() is True
        assert queue.retreat() is False
        assert queue.active_index == 0

    def test_retreat_without_active_track(self):
        assert _queue("a").retreat() is False

    @pytest.mark.parametrize("track_number", [0, -1, 4])
    def test_jump_to_out_of_range_keeps_cursor(self, track_number):
        queue = _queue("a", "b", "c")
        queue.jump_to(2)

        assert queue.jump_to(track_number) is False
        assert queue.active_index == 1

    def test_peek_next_and_upcoming(self):
        queue = _queue("a", "b", "c")
        queue.advance()

        assert str(queue.peek_next().id) == "b"
        assert [str(t.id) for t in queue.upcoming()] == ["b", "c"]

        queue.jump_to(3)
        assert queue.peek_next() is None


class TestRemove:
    def test_cannot_remove_active_track(self):
        queue = _queue("a", "b")
        queue.advance()

        assert queue.remove_at(1) is False
        assert len(queue) == 2

    def test_remove_before_active_keeps_same_track_active(self):
        queue = _queue("a", "b", "c")
        queue.jump_to(3)

        assert queue.remove_at(1) is True

        assert _ids(queue) == ["b", "c"]
        assert str(queue.active_track().id) == "c"
        assert queue.active_track_number() == 2

    def test_remove_after_active(self):
        queue = _queue("a", "b", "c")
        queue.advance()

        assert queue.remove_at(3) is True
        assert _ids(queue) == ["a", "b"]
        assert queue.active_index == 0

    @pytest.mark.parametrize("track_number", [0, 5])
    def test_remove_out_of_range(self, track_number):
        queue = _queue("a", "b")

        assert queue.remove_at(track_number) is False

    def test_remove_from_empty_queue(self):
        assert PlayQueue().remove_at(1) is False


def test_clear_resets_cursor():
    queue = _queue("a", "b")
    queue.advance()

    queue.clear()

    assert len(queue) == 0
    assert queue.active_index == NO_ACTIVE_TRACK
    assert queue.active_track() is None


def test_total_duration_sums_tracks():
    queue = PlayQueue([make_remote_track("a", duration_ms=1000), make_remote_track("b", duration_ms=2500)])

    assert queue.total_duration_ms == 3500
