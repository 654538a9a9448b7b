"""
Shared pytest fixtures.

Uses a throwaway SQLite database so no Postgres is required for tests, and
an httpx MockTransport in place of the Spotify API.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_kdle.db")
os.environ.setdefault("ADMIN_EMAILS", "admin@kdle.test")

import re

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from kdle.core.config import settings
from kdle.core.dates import game_today
from kdle.core.rate_limit import RateLimiter, get_rate_limiter
from kdle.db.base import Base, get_db
from kdle.main import app
from kdle.models.daily_song import DailySong
from kdle.models.song import Song
from kdle.services.catalog import SpotifyClient, get_catalog_client

SQLITE_URL = "sqlite:///./test_kdle.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_EMAIL = "admin@kdle.test"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Fake Spotify
# ---------------------------------------------------------------------------

def track_json(track_id, name, artists, preview_url=None, release_date="2022-08-01"):
    return {
        "id": track_id,
        "name": name,
        "artists": [{"name": a} for a in artists],
        "preview_url": preview_url,
        "album": {
            "name": f"{name} (Single)",
            "images": [{"url": f"https://i.scdn.co/image/{track_id}"}],
            "release_date": release_date,
        },
        "duration_ms": 180000,
        "popularity": 80,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


class FakeSpotify:
    """Routes requests to canned responses and records what was called."""

    def __init__(self):
        self.tracks = {
            "hypeboy123": track_json("hypeboy123", "Hype Boy", ["NewJeans"]),
            "ditto45678": track_json(
                "ditto45678", "Ditto", ["NewJeans"],
                preview_url="https://p.scdn.co/mp3-preview/ditto",
            ),
        }
        self.search_items = list(self.tracks.values())
        self.embed_html = (
            '<script>{"audioPreview":{"url":"https://p.scdn.co/mp3-preview/abc123"}}</script>'
        )
        # Raw text served by /v1/search in place of the JSON listing
        self.search_body = None
        self.token_calls = 0
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url
        if url.host == "accounts.spotify.com":
            self.token_calls += 1
            return httpx.Response(200, json={"access_token": "fake-token", "expires_in": 3600})
        if url.host == "open.spotify.com" and url.path.startswith("/embed/track/"):
            return httpx.Response(200, text=self.embed_html)
        m = re.match(r"^/v1/tracks/(.+)$", url.path)
        if m:
            track = self.tracks.get(m.group(1))
            if track is None:
                return httpx.Response(404, json={"error": {"status": 404}})
            return httpx.Response(200, json=track)
        if url.path == "/v1/search":
            if self.search_body is not None:
                return httpx.Response(200, text=self.search_body)
            limit = int(url.params.get("limit", "5"))
            return httpx.Response(200, json={"tracks": {"items": self.search_items[:limit]}})
        return httpx.Response(404)


@pytest.fixture()
def fake_spotify():
    return FakeSpotify()


@pytest.fixture()
def catalog(fake_spotify):
    http = httpx.Client(transport=httpx.MockTransport(fake_spotify.handler))
    client = SpotifyClient("client-id", "client-secret", http=http)
    yield client
    client.close()


# ---------------------------------------------------------------------------
# App client
# ---------------------------------------------------------------------------

@pytest.fixture()
def limiter():
    return RateLimiter()


@pytest.fixture()
def client(db, catalog, limiter):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_client] = lambda: catalog
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_token(user_id="user-1", email="player@kdle.test", audience=None, secret=None):
    return jwt.encode(
        {"sub": user_id, "email": email, "aud": audience or settings.AUTH_JWT_AUDIENCE},
        secret or settings.AUTH_JWT_SECRET,
        algorithm="HS256",
    )


def auth_headers(user_id="user-1", email="player@kdle.test"):
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture()
def admin_headers():
    return auth_headers("admin-1", ADMIN_EMAIL)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

def add_song(db, spotify_id="hypeboy123", title="Hype Boy", artist="NewJeans", **kwargs):
    song = Song(
        spotify_id=spotify_id,
        title=title,
        artist=artist,
        release_year=kwargs.get("release_year", 2022),
        album_image=kwargs.get("album_image", f"https://i.scdn.co/image/{spotify_id}"),
        preview_url=kwargs.get("preview_url", "https://p.scdn.co/mp3-preview/stored"),
    )
    db.add(song)
    db.commit()
    db.refresh(song)
    return song


@pytest.fixture()
def puzzle(db):
    """Hype Boy by NewJeans, scheduled for the current game day."""
    song = add_song(db)
    db.add(DailySong(date=game_today(), song_id=song.id))
    db.commit()
    return song


@pytest.fixture()
def headers_for():
    """headers_for(user_id, email) -> Authorization header dict."""
    return auth_headers


@pytest.fixture()
def song_factory(db):
    def _make(**kwargs):
        return add_song(db, **kwargs)
    return _make
