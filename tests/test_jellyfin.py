"""Tests for the Jellyfin client, stream URLs, item lookup and playstate reporting."""

import json

import httpx
import pytest
import pytest_asyncio
from conftest import make_downloadable_track, make_remote_track
from pydantic import SecretStr

from discord_jellyfin_player.config.settings import JellyfinSettings
from discord_jellyfin_player.domain.music.events import (
    PlaybackPaused,
    PlaybackResumed,
    PlaybackStarted,
    PlaybackStopped,
    TransportProgressed,
)
from discord_jellyfin_player.domain.music.value_objects import MediaKind
from discord_jellyfin_player.infrastructure.jellyfin.client import (
    build_authorization_header,
    create_http_client,
)
from discord_jellyfin_player.infrastructure.jellyfin.item_client import JellyfinItemClient
from discord_jellyfin_player.infrastructure.jellyfin.models import JellyfinItem, PlaybackReport
from discord_jellyfin_player.infrastructure.jellyfin.playstate_reporter import (
    JellyfinPlaystateReporter,
)
from discord_jellyfin_player.infrastructure.jellyfin.stream_url_builder import (
    JellyfinStreamUrlBuilder,
)

SERVER = "http://jellyfin.local:8096"


@pytest.fixture
def settings():
    return JellyfinSettings(
        server_url=SERVER,
        api_key=SecretStr("secret-key"),
        user_id="user-1",
        device_id="device-1",
        progress_report_interval_s=5.0,
    )


class Recorder:
    """MockTransport handler that records requests and answers with a fixed status."""

    def __init__(self, status_code: int = 204, **response_kwargs) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.response_kwargs = response_kwargs

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.response_kwargs)

    def bodies(self) -> list[tuple[str, dict]]:
        return [(r.url.path, json.loads(r.content)) for r in self.requests]


# =============================================================================
# Client / stream URL
# =============================================================================


class TestClient:
    def test_authorization_header(self, settings):
        header = build_authorization_header(settings)

        assert header.startswith("MediaBrowser ")
        assert 'Token="secret-key"' in header
        assert 'DeviceId="device-1"' in header

    def test_authorization_header_for_other_device(self, settings):
        header = build_authorization_header(settings, "device-1-42")

        assert 'DeviceId="device-1-42"' in header

    @pytest.mark.asyncio
    async def test_client_sends_auth_and_base_url(self, settings):
        recorder = Recorder(200, json={})
        client = create_http_client(settings, transport=httpx.MockTransport(recorder))

        async with client:
            await client.get("/System/Ping")

        request = recorder.requests[0]
        assert str(request.url) == f"{SERVER}/System/Ping"
        assert request.headers["Authorization"].startswith("MediaBrowser ")


class TestStreamUrlBuilder:
    def test_builds_universal_audio_url(self, settings):
        url = httpx.URL(JellyfinStreamUrlBuilder(settings).build_stream_url("item-9"))

        assert url.path == "/Audio/item-9/universal"
        assert url.host == "jellyfin.local"
        assert url.params["UserId"] == "user-1"
        assert url.params["DeviceId"] == "device-1"
        assert url.params["MaxStreamingBitrate"] == "96000"
        assert url.params["Container"] == "ogg,opus"
        assert url.params["AudioCodec"] == "opus"
        assert url.params["TranscodingContainer"] == "ts"
        assert url.params["TranscodingProtocol"] == "hls"
        assert url.params["api_key"] == "secret-key"

    def test_is_pure(self, settings):
        builder = JellyfinStreamUrlBuilder(settings)

        assert builder.build_stream_url("a") == builder.build_stream_url("a")


# =============================================================================
# Items
# =============================================================================


class TestJellyfinItem:
    def test_to_track_maps_fields(self):
        item = JellyfinItem.model_validate(
            {
                "Id": "abc",
                "Name": "Song",
                "Album": "Record",
                "Artists": ["Band"],
                "RunTimeTicks": 1_800_000_000,
                "ImageTags": {"Primary": "tag"},
            }
        )

        track = item.to_track(SERVER)

        assert str(track.id) == "abc"
        assert track.artist == "Band"
        assert track.album == "Record"
        assert track.duration_ms == 180_000
        assert track.artwork_url == f"{SERVER}/Items/abc/Images/Primary"

    def test_album_artist_wins_and_blank_name_falls_back(self):
        item = JellyfinItem.model_validate(
            {"Id": "abc", "Name": " ", "AlbumArtist": "Artist", "Artists": ["Other"], "RunTimeTicks": None}
        )

        assert item.artist == "Artist"
        assert item.name == "Unknown Title"
        assert item.duration_ms == 0


class TestItemClient:
    @pytest.mark.asyncio
    async def test_returns_tracks_in_request_order(self, settings):
        payload = {
            "Items": [
                {"Id": "b", "Name": "B", "RunTimeTicks": 10_000},
                {"Id": "a", "Name": "A", "RunTimeTicks": 20_000},
            ],
            "TotalRecordCount": 2,
        }
        recorder = Recorder(200, json=payload)
        async with create_http_client(settings, transport=httpx.MockTransport(recorder)) as client:
            tracks = await JellyfinItemClient(client, settings).get_tracks_by_ids(["a", "missing", "b"])

        assert [str(t.id) for t in tracks] == ["a", "b"]
        params = recorder.requests[0].url.params
        assert params["Ids"] == "a,missing,b"
        assert params["IncludeItemTypes"] == "Audio"
        assert params["UserId"] == "user-1"

    @pytest.mark.asyncio
    async def test_empty_ids_skip_request(self, settings):
        recorder = Recorder()
        async with create_http_client(settings, transport=httpx.MockTransport(recorder)) as client:
            assert await JellyfinItemClient(client, settings).get_tracks_by_ids([]) == []

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self, settings):
        recorder = Recorder(500)
        async with create_http_client(settings, transport=httpx.MockTransport(recorder)) as client:
            assert await JellyfinItemClient(client, settings).get_tracks_by_ids(["a"]) == []

    @pytest.mark.asyncio
    async def test_malformed_body_returns_empty(self, settings):
        recorder = Recorder(200, content=b"not json")
        async with create_http_client(settings, transport=httpx.MockTransport(recorder)) as client:
            assert await JellyfinItemClient(client, settings).get_tracks_by_ids(["a"]) == []


class Router:
    """MockTransport handler answering ``/Items`` listings by path and query."""

    def __init__(self, routes) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for matches, items in self.routes:
            if matches(request):
                return httpx.Response(200, json={"Items": items, "TotalRecordCount": len(items)})
        return httpx.Response(404)


def _items_client(settings, router):
    return create_http_client(settings, transport=httpx.MockTransport(router))


class TestItemSearch:
    @pytest.mark.asyncio
    async def test_search_maps_hints_and_filters(self, settings):
        router = Router(
            [
                (
                    lambda r: "searchTerm" in r.url.params,
                    [
                        {"Id": "s1", "Name": "Song", "Type": "Audio", "AlbumArtist": "Band"},
                        {"Id": "al", "Name": "Record", "Type": "MusicAlbum"},
                        {"Id": "v1", "Name": "Clip", "Type": "Video"},
                    ],
                )
            ]
        )
        async with _items_client(settings, router) as client:
            hints = await JellyfinItemClient(client, settings).search(
                " song ", kinds=[MediaKind.AUDIO, MediaKind.ALBUM], limit=5
            )

        assert [(h.id, h.kind) for h in hints] == [("s1", MediaKind.AUDIO), ("al", MediaKind.ALBUM)]
        assert hints[0].display_name == "Song (Band)"
        assert hints[1].display_name == "Record"
        params = router.requests[0].url.params
        assert params["searchTerm"] == "song"
        assert params["IncludeItemTypes"] == "Audio,MusicAlbum"
        assert params["Recursive"] == "true"
        assert params["Limit"] == "5"
        assert params["UserId"] == "user-1"

    @pytest.mark.asyncio
    async def test_blank_query_skips_request(self, settings):
        router = Router([])
        async with _items_client(settings, router) as client:
            assert await JellyfinItemClient(client, settings).search("  ", kinds=[MediaKind.AUDIO]) == []

        assert router.requests == []

    @pytest.mark.asyncio
    async def test_search_failure_returns_empty(self, settings):
        router = Router([])
        async with _items_client(settings, router) as client:
            assert await JellyfinItemClient(client, settings).search("x", kinds=[MediaKind.AUDIO]) == []

    @pytest.mark.asyncio
    async def test_song_expands_to_itself(self, settings):
        router = Router([(lambda r: r.url.params.get("Ids") == "s1", [{"Id": "s1", "Type": "Audio"}])])
        async with _items_client(settings, router) as client:
            tracks = await JellyfinItemClient(client, settings).get_tracks_for_item("s1")

        assert [str(t.id) for t in tracks] == ["s1"]
        assert len(router.requests) == 1

    @pytest.mark.asyncio
    async def test_album_expands_to_sorted_children(self, settings):
        router = Router(
            [
                (lambda r: r.url.params.get("Ids") == "al", [{"Id": "al", "Type": "MusicAlbum"}]),
                (
                    lambda r: r.url.params.get("ParentId") == "al",
                    [{"Id": "t1", "Type": "Audio"}, {"Id": "t2", "Type": "Audio"}],
                ),
            ]
        )
        async with _items_client(settings, router) as client:
            tracks = await JellyfinItemClient(client, settings).get_tracks_for_item("al")

        assert [str(t.id) for t in tracks] == ["t1", "t2"]
        params = router.requests[1].url.params
        assert params["IncludeItemTypes"] == "Audio"
        assert params["SortBy"] == "ParentIndexNumber,IndexNumber,SortName"

    @pytest.mark.asyncio
    async def test_playlist_expands_to_its_songs(self, settings):
        router = Router(
            [
                (lambda r: r.url.params.get("Ids") == "pl", [{"Id": "pl", "Type": "Playlist"}]),
                (
                    lambda r: r.url.path == "/Playlists/pl/Items",
                    [
                        {"Id": "t1", "Type": "Audio"},
                        {"Id": "m1", "Type": "Movie"},
                        {"Id": "t2", "Type": "Audio"},
                    ],
                ),
            ]
        )
        async with _items_client(settings, router) as client:
            tracks = await JellyfinItemClient(client, settings).get_tracks_for_item("pl")

        assert [str(t.id) for t in tracks] == ["t1", "t2"]
        assert router.requests[1].url.params["UserId"] == "user-1"

    @pytest.mark.asyncio
    async def test_unsupported_item_expands_to_nothing(self, settings, caplog):
        router = Router([(lambda r: True, [{"Id": "f1", "Type": "Folder"}])])
        async with _items_client(settings, router) as client:
            assert await JellyfinItemClient(client, settings).get_tracks_for_item("f1") == []

        assert "Cannot expand Jellyfin item of type Folder" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_item_expands_to_nothing(self, settings):
        router = Router([(lambda r: True, [])])
        async with _items_client(settings, router) as client:
            assert await JellyfinItemClient(client, settings).get_tracks_for_item("nope") == []

    @pytest.mark.asyncio
    async def test_random_tracks(self, settings):
        router = Router(
            [(lambda r: r.url.params.get("SortBy") == "Random", [{"Id": "r1"}, {"Id": "r2"}])]
        )
        async with _items_client(settings, router) as client:
            tracks = await JellyfinItemClient(client, settings).get_random_tracks(2)

        assert [str(t.id) for t in tracks] == ["r1", "r2"]
        params = router.requests[0].url.params
        assert params["IncludeItemTypes"] == "Audio"
        assert params["Limit"] == "2"

    @pytest.mark.asyncio
    async def test_random_with_no_count_skips_request(self, settings):
        router = Router([])
        async with _items_client(settings, router) as client:
            assert await JellyfinItemClient(client, settings).get_random_tracks(0) == []

        assert router.requests == []


# =============================================================================
# Playstate reporting
# =============================================================================


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recorder():
    return Recorder()


@pytest_asyncio.fixture
async def reporter(settings, event_bus, recorder, clock):
    client = create_http_client(settings, transport=httpx.MockTransport(recorder))
    r = JellyfinPlaystateReporter(client=client, event_bus=event_bus, settings=settings, clock=clock)
    r.attach()
    yield r
    r.detach()
    await client.aclose()


class TestPlaybackReport:
    def test_payload_uses_jellyfin_keys_and_ticks(self):
        payload = PlaybackReport.at("abc", 1_500, is_paused=True).to_payload()

        assert payload == {"ItemId": "abc", "PositionTicks": 15_000_000, "IsPaused": True}


class TestPlaystateReporter:
    @pytest.mark.asyncio
    async def test_start_reports_playing(self, reporter, event_bus, recorder):
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("a")))

        assert recorder.bodies() == [
            ("/Sessions/Playing", {"ItemId": "a", "PositionTicks": 0, "IsPaused": False})
        ]

    @pytest.mark.asyncio
    async def test_downloaded_tracks_are_not_reported(self, reporter, event_bus, recorder):
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_downloadable_track("d")))
        await event_bus.publish(PlaybackStopped(guild_id=1))

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_next_start_stops_previous_track(self, reporter, event_bus, recorder):
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("a")))
        await event_bus.publish(TransportProgressed(guild_id=1, elapsed_ms=2_000))
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("b")))

        paths = [path for path, _ in recorder.bodies()]
        assert paths == ["/Sessions/Playing", "/Sessions/Playing/Stopped", "/Sessions/Playing"]
        assert recorder.bodies()[1][1]["PositionTicks"] == 20_000_000

    @pytest.mark.asyncio
    async def test_progress_is_throttled(self, reporter, event_bus, recorder, clock):
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("a")))

        await event_bus.publish(TransportProgressed(guild_id=1, elapsed_ms=1_000))
        assert len(recorder.requests) == 1

        clock.now += 5.0
        await event_bus.publish(TransportProgressed(guild_id=1, elapsed_ms=6_000))
        assert recorder.bodies()[-1] == (
            "/Sessions/Playing/Progress",
            {"ItemId": "a", "PositionTicks": 60_000_000, "IsPaused": False},
        )

    @pytest.mark.asyncio
    async def test_pause_and_resume_report_immediately(self, reporter, event_bus, recorder):
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("a")))
        await event_bus.publish(PlaybackPaused(guild_id=1))
        await event_bus.publish(PlaybackResumed(guild_id=1))

        flags = [body["IsPaused"] for path, body in recorder.bodies() if path.endswith("Progress")]
        assert flags == [True, False]

    @pytest.mark.asyncio
    async def test_stop_reports_once(self, reporter, event_bus, recorder):
        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("a")))
        await event_bus.publish(PlaybackStopped(guild_id=1))
        await event_bus.publish(PlaybackStopped(guild_id=1))

        stopped = [path for path, _ in recorder.bodies() if path.endswith("Stopped")]
        assert stopped == ["/Sessions/Playing/Stopped"]
        assert reporter.state_for(1).track is None

    @pytest.mark.asyncio
    async def test_server_errors_are_swallowed(self, reporter, event_bus, recorder, caplog):
        recorder.status_code = 503

        await event_bus.publish(PlaybackStarted(guild_id=1, track=make_remote_track("a")))

        assert "Failed to report start to Jellyfin" in caplog.text
        assert reporter.state_for(1).track is not None
