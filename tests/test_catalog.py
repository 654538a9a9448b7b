"""
Tests for the Spotify client against a MockTransport: token caching,
track lookup, search filtering and the best-effort preview finder.
"""
import httpx
import pytest

from kdle.core.errors import CatalogError
from kdle.services.catalog import (
    CatalogTrack,
    SpotifyClient,
    filter_official,
    is_official,
    split_artist_title,
)


def _track(track_id, name, artists):
    return CatalogTrack(id=track_id, name=name, artists=artists)


class TestTokenCache:
    def test_token_reused_until_expiry(self, fake_spotify):
        now = [0.0]
        http = httpx.Client(transport=httpx.MockTransport(fake_spotify.handler))
        client = SpotifyClient("id", "secret", http=http, clock=lambda: now[0])

        client.get_track_by_id("hypeboy123")
        client.get_track_by_id("ditto45678")
        assert fake_spotify.token_calls == 1

        now[0] = 3600 - 30  # inside the refresh margin
        client.get_track_by_id("hypeboy123")
        assert fake_spotify.token_calls == 2

    def test_token_failure(self):
        http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(401)))
        client = SpotifyClient("id", "bad", http=http)
        with pytest.raises(CatalogError) as exc_info:
            client.access_token()
        assert exc_info.value.details["upstream_status"] == 401


class TestLookups:
    def test_get_track(self, catalog):
        t = catalog.get_track_by_id("hypeboy123")
        assert t.name == "Hype Boy"
        assert t.primary_artist == "NewJeans"
        assert t.release_year == 2022
        assert t.album_image == "https://i.scdn.co/image/hypeboy123"
        assert t.label == "NewJeans - Hype Boy"

    def test_get_missing_track(self, catalog):
        assert catalog.get_track_by_id("missing000") is None

    def test_search_sends_market(self, catalog, fake_spotify):
        catalog.search_tracks("ditto", limit=2, market="KR")
        req = fake_spotify.requests[-1]
        assert req.url.params["market"] == "KR"
        assert req.url.params["type"] == "track"
        assert req.headers["Authorization"] == "Bearer fake-token"

    def test_search_failure_raises(self, fake_spotify):
        def handler(request):
            if request.url.host == "accounts.spotify.com":
                return fake_spotify.handler(request)
            return httpx.Response(503)
        client = SpotifyClient("id", "secret", http=httpx.Client(transport=httpx.MockTransport(handler)))
        with pytest.raises(CatalogError):
            client.search_tracks("anything")


class TestFiltering:
    def test_non_official_terms(self):
        assert not is_official(_track("1", "Hype Boy (Sped Up)", ["NewJeans"]))
        assert not is_official(_track("2", "Hype Boy", ["Karaoke Kings"]))
        assert is_official(_track("3", "Hype Boy", ["NewJeans"]))

    def test_filter_keeps_official(self):
        tracks = [
            _track("1", "Hype Boy", ["NewJeans"]),
            _track("2", "Hype Boy (Remix)", ["DJ"]),
            _track("3", "Ditto", ["NewJeans"]),
            _track("4", "OMG", ["NewJeans"]),
        ]
        kept = filter_official(tracks)
        assert [t.id for t in kept] == ["1", "3", "4"]

    def test_filter_relaxes_when_too_few(self):
        tracks = [
            _track("1", "Hype Boy", ["NewJeans"]),
            _track("2", "Hype Boy (Remix)", ["DJ"]),
        ]
        assert filter_official(tracks) == tracks

    def test_artist_title_must_match(self):
        tracks = [
            _track("1", "Hype Boy", ["NewJeans"]),
            _track("2", "Hype Boy", ["Someone Else"]),
            _track("3", "Ditto", ["NewJeans"]),
        ]
        kept = filter_official(tracks, artist="NewJeans", title="Hype Boy", minimum=1)
        assert [t.id for t in kept] == ["1"]

    @pytest.mark.parametrize("q,expected", [
        ("NewJeans - Hype Boy", ("NewJeans", "Hype Boy")),
        ("Hype Boy", (None, None)),
        (" - Hype Boy", (None, None)),
    ])
    def test_split_artist_title(self, q, expected):
        assert split_artist_title(q) == expected


class TestSearchForPlayers:
    def test_blank_query(self, catalog, fake_spotify):
        assert catalog.search_for_players("   ") == []
        assert fake_spotify.requests == []

    def test_kpop_results_first(self, catalog, fake_spotify):
        results = catalog.search_for_players("newjeans", limit=2)
        assert [t.id for t in results] == ["hypeboy123", "ditto45678"]
        search = [r for r in fake_spotify.requests if r.url.path == "/v1/search"]
        assert len(search) == 1
        assert search[0].url.params["q"] == "newjeans genre:k-pop"

    def test_falls_back_to_market_queries(self, catalog, fake_spotify):
        fake_spotify.search_items = fake_spotify.search_items[:1]
        results = catalog.search_for_players("NewJeans - Hype Boy", limit=3)
        assert [t.id for t in results] == ["hypeboy123"]
        markets = [
            r.url.params.get("market")
            for r in fake_spotify.requests
            if r.url.path == "/v1/search"
        ]
        assert markets[:4] == [None, "KR", "US", "JP"]


class TestFindPreviewUrls:
    def test_official_preview_used(self, catalog, fake_spotify):
        fake_spotify.search_items = [fake_spotify.tracks["ditto45678"]]
        assert catalog.find_preview_urls("Ditto", "NewJeans") == ["https://p.scdn.co/mp3-preview/ditto"]

    def test_scrapes_embed_page(self, catalog, fake_spotify):
        fake_spotify.search_items = [fake_spotify.tracks["hypeboy123"]]
        urls = catalog.find_preview_urls("Hype Boy", "NewJeans")
        assert urls == ["https://p.scdn.co/mp3-preview/abc123"]
        assert any(r.url.host == "open.spotify.com" for r in fake_spotify.requests)

    def test_dedupes_scraped_urls(self, catalog, fake_spotify):
        fake_spotify.search_items = [
            {"id": "a1", "name": "Song", "artists": [{"name": "X"}]},
            {"id": "a2", "name": "Song", "artists": [{"name": "X"}]},
        ]
        urls = catalog.find_preview_urls("Song", "X", limit=2)
        assert urls == ["https://p.scdn.co/mp3-preview/abc123"]

    def test_failure_returns_empty(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)
        client = SpotifyClient("id", "secret", http=httpx.Client(transport=httpx.MockTransport(handler)))
        assert client.find_preview_urls("Hype Boy", "NewJeans") == []

    def test_non_json_search_returns_empty(self, fake_spotify):
        fake_spotify.search_body = "<html>maintenance</html>"
        client = SpotifyClient(
            "id", "secret", http=httpx.Client(transport=httpx.MockTransport(fake_spotify.handler))
        )
        assert client.find_preview_urls("Hype Boy", "NewJeans") == []


class TestMalformedResponses:
    def test_non_json_search(self, catalog, fake_spotify):
        fake_spotify.search_body = "<html>maintenance</html>"
        with pytest.raises(CatalogError):
            catalog.search_tracks("ditto")

    def test_token_body_without_access_token(self):
        http = httpx.Client(transport=httpx.MockTransport(
            lambda r: httpx.Response(200, json={"token_type": "bearer"})
        ))
        client = SpotifyClient("id", "secret", http=http)
        with pytest.raises(CatalogError):
            client.access_token()

    def test_non_json_track(self, fake_spotify):
        def handler(request):
            if request.url.path.startswith("/v1/tracks/"):
                return httpx.Response(200, text="oops")
            return fake_spotify.handler(request)
        client = SpotifyClient("id", "secret", http=httpx.Client(transport=httpx.MockTransport(handler)))
        with pytest.raises(CatalogError):
            client.get_track_by_id("hypeboy123")
