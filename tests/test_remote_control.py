"""Tests for JellyfinRemoteControl message translation."""

import json
from unittest.mock import AsyncMock

import pytest
from conftest import make_remote_track

from discord_jellyfin_player.domain.music.events import RemoteControlRequested
from discord_jellyfin_player.domain.music.value_objects import ControlCommand
from discord_jellyfin_player.infrastructure.jellyfin.remote_control import JellyfinRemoteControl


@pytest.fixture
def track_lookup():
    lookup = AsyncMock()
    lookup.get_tracks_by_ids = AsyncMock(return_value=[make_remote_track("a"), make_remote_track("b")])
    return lookup


@pytest.fixture
def published(event_bus):
    events: list[RemoteControlRequested] = []

    async def record(event):
        events.append(event)

    event_bus.subscribe(RemoteControlRequested, record)
    return events


@pytest.fixture
def remote(track_lookup, event_bus):
    return JellyfinRemoteControl(track_lookup=track_lookup, event_bus=event_bus)


class TestPlayMessages:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("play_command", "expected"),
        [
            ("PlayNow", ControlCommand.ENQUEUE),
            ("PlayLast", ControlCommand.ENQUEUE),
            ("PlayNext", ControlCommand.ENQUEUE_NEXT),
        ],
    )
    async def test_play_commands_enqueue_looked_up_tracks(
        self, remote, track_lookup, published, play_command, expected
    ):
        await remote.handle_message(
            7,
            {"MessageType": "Play", "Data": {"ItemIds": ["a", "b"], "PlayCommand": play_command}},
        )

        track_lookup.get_tracks_by_ids.assert_awaited_once_with(["a", "b"])
        assert len(published) == 1
        assert published[0].guild_id == 7
        assert published[0].command is expected
        assert [str(t.id) for t in published[0].tracks] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_start_index_trims_selection(self, remote, track_lookup, published):
        message = json.dumps(
            {"MessageType": "Play", "Data": {"ItemIds": ["x", "a", "b"], "StartIndex": 1}}
        )

        await remote.handle_message(7, message)

        track_lookup.get_tracks_by_ids.assert_awaited_once_with(["a", "b"])

    @pytest.mark.asyncio
    async def test_nothing_found_publishes_nothing(self, remote, track_lookup, published):
        track_lookup.get_tracks_by_ids.return_value = []

        await remote.handle_message(7, {"MessageType": "Play", "Data": {"ItemIds": ["zzz"]}})

        assert published == []

    @pytest.mark.asyncio
    async def test_unknown_play_command_is_ignored(self, remote, track_lookup, published):
        await remote.handle_message(
            7, {"MessageType": "Play", "Data": {"ItemIds": ["a"], "PlayCommand": "PlayShuffle"}}
        )

        track_lookup.get_tracks_by_ids.assert_not_awaited()
        assert published == []


class TestPlaystateMessages:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("command", "expected"),
        [
            ("PlayPause", ControlCommand.TOGGLE_PAUSE),
            ("Pause", ControlCommand.PAUSE),
            ("Unpause", ControlCommand.UNPAUSE),
            ("Stop", ControlCommand.STOP),
            ("NextTrack", ControlCommand.NEXT),
            ("PreviousTrack", ControlCommand.PREVIOUS),
        ],
    )
    async def test_playstate_commands(self, remote, published, command, expected):
        await remote.handle_message(3, {"MessageType": "Playstate", "Data": {"Command": command}})

        assert [e.command for e in published] == [expected]
        assert published[0].tracks == []

    @pytest.mark.asyncio
    async def test_unknown_playstate_command_is_logged(self, remote, published, caplog):
        await remote.handle_message(3, {"MessageType": "Playstate", "Data": {"Command": "Seek"}})

        assert published == []
        assert "Unable to process playstate command: Seek" in caplog.text


class TestOtherMessages:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("message_type", ["KeepAlive", "ForceKeepAlive"])
    async def test_keepalive_is_ignored(self, remote, published, caplog, message_type):
        await remote.handle_message(3, {"MessageType": message_type})

        assert published == []
        assert "unknown type" not in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_type_is_logged(self, remote, published, caplog):
        await remote.handle_message(3, {"MessageType": "LibraryChanged", "Data": {}})

        assert published == []
        assert "Received a message of unknown type: LibraryChanged" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_json_is_logged(self, remote, published, caplog):
        await remote.handle_message(3, "{not json")

        assert published == []
        assert "unknown type" in caplog.text
