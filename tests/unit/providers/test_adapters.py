"""Adapter payload handling against stubbed HTTP sessions (no network)."""

from unittest.mock import Mock

import pytest

from pte.errors import AuthError, NotSupportedError, QuotaError
from pte.providers import available_provider_instances, get_provider_instance
from pte.providers.amazon import AmazonMusicAdapter
from pte.providers.apple.client import AppleMusicAdapter
from pte.providers.base import AddStatus, Credential, Platform
from pte.providers.spotify.client import SpotifyAdapter
from pte.providers.youtube.client import YouTubeAdapter, split_video_title
from tests.mocks.fake_adapter import make_track
from .test_http_mapping import fake_response


class RoutedSession:
    """requests.Session stand-in answering from a list of (method, path-fragment, response)."""

    def __init__(self, routes):
        self.routes = list(routes)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        for m, fragment, response in self.routes:
            if m == method and fragment in url:
                if isinstance(response, list):
                    return response.pop(0) if len(response) > 1 else response[0]
                return response
        raise AssertionError(f"unexpected request {method} {url}")


def ok(payload):
    return fake_response(200, "{...}", payload=payload)


def spotify_item(track_id, name, artist="Band", local=False):
    return {"track": {
        "id": track_id, "name": name, "is_local": local, "duration_ms": 200000,
        "artists": [{"name": artist}], "album": {"name": "Album"},
    }}


class TestSpotifyAdapter:

    def test_fetch_paginates_and_skips_local_files(self):
        first_page = [spotify_item(f"id{i}", f"Song {i}") for i in range(100)]
        first_page[5] = spotify_item(None, "Local file", local=True)
        session = RoutedSession([("GET", "/playlists/p1/tracks", [
            ok({"items": first_page}),
            ok({"items": [spotify_item("id100", "Song 100"), {"track": None}]}),
        ])])

        tracks = SpotifyAdapter(Credential("t"), session=session).fetch_tracks("p1")

        assert len(tracks) == 100
        assert [t.position for t in tracks] == list(range(1, 101))
        assert tracks[0].duration == "3:20"
        assert tracks[0].album == "Album"
        assert session.requests[1][2]["params"]["offset"] == 100

    def test_search_builds_field_query_and_keeps_position(self):
        session = RoutedSession([("GET", "/search", ok({"tracks": {"items": [spotify_item("x1", "Hello")["track"]]}}))])

        found = SpotifyAdapter(Credential("t"), session=session).search_track(make_track("Hello", 9, artist='A "B"'))

        assert found.external_id == "x1"
        assert found.position == 9
        assert session.requests[0][2]["params"]["q"] == 'track:"Hello" artist:"A  B"'

    def test_search_without_results_returns_none(self):
        session = RoutedSession([("GET", "/search", ok({"tracks": {"items": []}}))])
        assert SpotifyAdapter(Credential("t"), session=session).search_track(make_track("Nope", 1)) is None

    def test_create_playlist_is_private_under_current_user(self):
        session = RoutedSession([
            ("GET", "/me", ok({"id": "user1"})),
            ("POST", "/users/user1/playlists", ok({"id": "new1", "name": "Mix", "external_urls": {}})),
        ])
        playlist = SpotifyAdapter(Credential("t"), session=session).create_playlist("Mix", "desc")
        assert playlist.id == "new1"
        assert playlist.platform is Platform.SPOTIFY
        assert playlist.track_count == 0
        assert session.requests[1][2]["json"]["public"] is False

    def test_add_tracks_sends_uris_in_order(self):
        session = RoutedSession([("POST", "/playlists/p/tracks", ok({"snapshot_id": "s"}))])
        tracks = [make_track("A", 1, external_id="a"), make_track("B", 2, external_id="b")]

        outcomes = SpotifyAdapter(Credential("t"), session=session).add_tracks("p", tracks)

        assert [o.status for o in outcomes] == [AddStatus.ADDED, AddStatus.ADDED]
        assert session.requests[0][2]["json"] == {"uris": ["spotify:track:a", "spotify:track:b"]}

    def test_replace_removes_before_adding(self):
        session = RoutedSession([
            ("DELETE", "/playlists/p/tracks", ok({})),
            ("POST", "/playlists/p/tracks", ok({})),
        ])
        SpotifyAdapter(Credential("t"), session=session).add_tracks("p", [make_track("A", 1, external_id="a")], replace=True)
        assert [r[0] for r in session.requests] == ["DELETE", "POST"]


class TestYouTubeAdapter:

    @pytest.mark.parametrize("title,channel,expected", [
        ("Queen - Bohemian Rhapsody (Official Video)", "Queen Official", ("Bohemian Rhapsody (Official Video)", ("Queen",))),
        ("Bohemian Rhapsody", "Queen - Topic", ("Bohemian Rhapsody", ("Queen",))),
        ("Bohemian Rhapsody", "", ("Bohemian Rhapsody", ())),
    ])
    def test_split_video_title(self, title, channel, expected):
        assert split_video_title(title, channel) == expected

    def test_fetch_skips_deleted_and_private_videos(self):
        items = [
            {"snippet": {"title": "Artist - Song", "videoOwnerChannelTitle": "Artist"}, "contentDetails": {"videoId": "v1"}},
            {"snippet": {"title": "Deleted video"}, "contentDetails": {"videoId": "v2"}},
            {"snippet": {"title": "Private video"}, "contentDetails": {"videoId": "v3"}},
            {"snippet": {"title": "Other", "videoOwnerChannelTitle": "Band - Topic"}, "contentDetails": {"videoId": "v4"}},
        ]
        session = RoutedSession([("GET", "/playlistItems", ok({"items": items}))])

        tracks = YouTubeAdapter(Credential("t"), session=session).fetch_tracks("PL1")

        assert [(t.name, t.artists, t.position, t.external_id) for t in tracks] == [
            ("Song", ("Artist",), 1, "v1"),
            ("Other", ("Band",), 2, "v4"),
        ]

    def test_add_reports_per_video_outcomes(self):
        session = RoutedSession([("POST", "/playlistItems", [
            ok({"id": "item1"}),
            fake_response(404, "videoNotFound"),
            fake_response(503, "backend"),
        ])])
        tracks = [make_track(n, i + 1, Platform.YOUTUBE, external_id=n) for i, n in enumerate("abc")]

        outcomes = YouTubeAdapter(Credential("t"), session=session).add_tracks("PL", tracks)

        assert [o.status for o in outcomes] == [AddStatus.ADDED, AddStatus.UNAVAILABLE, AddStatus.TRANSIENT]

    def test_quota_error_aborts_the_call(self):
        session = RoutedSession([("POST", "/playlistItems", fake_response(403, "quotaExceeded"))])
        with pytest.raises(QuotaError):
            YouTubeAdapter(Credential("t"), session=session).add_tracks("PL", [make_track("a", 1, external_id="a")])

    def test_create_uses_configured_privacy(self):
        session = RoutedSession([("POST", "/playlists", ok({"id": "PL9", "snippet": {"title": "Mix"}}))])
        playlist = YouTubeAdapter(Credential("t"), {"privacy_status": "unlisted"}, session=session).create_playlist("Mix", "")
        assert session.requests[0][2]["json"]["status"]["privacyStatus"] == "unlisted"
        assert playlist.url.endswith("list=PL9")


class TestAppleMusicAdapter:

    def test_missing_developer_token_is_auth_error(self):
        session = Mock()
        with pytest.raises(AuthError):
            AppleMusicAdapter(Credential("user"), {}, session=session).search_track(make_track("A", 1))
        session.request.assert_not_called()

    def test_search_uses_storefront_and_both_tokens(self):
        song = {"id": "123", "attributes": {"name": "Hello", "artistName": "Adele", "albumName": "25",
                                            "durationInMillis": 295000}}
        session = RoutedSession([("GET", "/catalog/gb/search", ok({"results": {"songs": {"data": [song]}}}))])
        adapter = AppleMusicAdapter(Credential("user"), {"developer_token": "dev", "storefront": "gb"}, session=session)

        found = adapter.search_track(make_track("Hello", 4, artist="Adele"))

        assert (found.name, found.artists, found.external_id, found.position) == ("Hello", ("Adele",), "123", 4)
        headers = session.requests[0][2]["headers"]
        assert headers["Authorization"] == "Bearer dev"
        assert headers["Music-User-Token"] == "user"

    def test_fetch_follows_next_links(self):
        page1 = {"data": [{"id": "i1", "attributes": {"name": "A", "playParams": {"catalogId": "c1"}}}],
                 "next": "/v1/me/library/playlists/p/tracks?offset=1"}
        page2 = {"data": [{"id": "i2", "attributes": {"name": "B"}}]}
        session = RoutedSession([("GET", "/me/library/playlists/p/tracks", [ok(page1), ok(page2)])])

        tracks = AppleMusicAdapter(Credential("u"), {"developer_token": "d"}, session=session).fetch_tracks("p")

        assert [(t.name, t.external_id, t.position) for t in tracks] == [("A", "c1", 1), ("B", "i2", 2)]
        assert session.requests[1][1] == "https://api.music.apple.com/v1/me/library/playlists/p/tracks?offset=1"


def test_amazon_adapter_is_not_supported():
    adapter = AmazonMusicAdapter(Credential("t"))
    with pytest.raises(NotSupportedError):
        adapter.search_track(make_track("A", 1))
    with pytest.raises(NotSupportedError):
        adapter.create_playlist("x", "")


def test_registry_has_all_platforms():
    assert available_provider_instances() == sorted(p.value for p in Platform)
    provider = get_provider_instance(Platform.YOUTUBE)
    with pytest.raises(ValueError):
        provider.validate_config({"privacy_status": "secret"})
    with pytest.raises(ValueError):
        provider.validate_config({"requests_per_second": 0})
    adapter = provider.create_adapter(Credential("t"), provider.get_default_config())
    assert adapter.platform is Platform.YOUTUBE
