"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
import pytest
from datetime import date

from sqlalchemy.exc import OperationalError

from kdle.core.errors import (
    CatalogError,
    GameOverError,
    InvalidPayloadError,
    NoPuzzleError,
    RateLimitExceededError,
    SongNotFoundError,
    TrackNotFoundError,
    UsernameTakenError,
)
from kdle.db.base import get_db
from kdle.main import app


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_no_puzzle_error(self):
        err = NoPuzzleError(day=date(2026, 2, 20))
        assert err.http_status == 404
        assert err.code == "NO_PUZZLE"
        assert err.message == "Today's song not set"
        assert err.to_dict()["details"]["date"] == "2026-02-20"

    def test_game_over_error(self):
        err = GameOverError(guesses=6, won=False)
        assert err.http_status == 409
        assert err.code == "GAME_OVER"
        assert "no guesses remaining" in err.message

    def test_username_taken_error(self):
        err = UsernameTakenError("bias_wrecker")
        assert err.http_status == 409
        assert err.message == "Username already taken"
        assert err.details["username"] == "bias_wrecker"

    def test_song_and_track_not_found(self):
        assert SongNotFoundError("abc").http_status == 404
        assert TrackNotFoundError("abc").to_dict()["message"] == "Spotify track not found"

    def test_rate_limit_headers(self):
        err = RateLimitExceededError(remaining=0, reset_at=1_700_000_060.4, retry_after=12)
        assert err.http_status == 429
        assert err.headers() == {
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": "1700000060",
            "Retry-After": "12",
        }

    def test_catalog_error_upstream_status(self):
        assert CatalogError("down", upstream_status=502).details == {"upstream_status": 502}
        assert CatalogError("down").to_dict() == {"code": "CATALOG_ERROR", "message": "down"}

    def test_to_dict_without_details(self):
        d = InvalidPayloadError().to_dict()
        assert d == {"code": "INVALID_PAYLOAD", "message": "Invalid payload"}


# ---------------------------------------------------------------------------
# HTTP error envelopes
# ---------------------------------------------------------------------------

class TestValidationErrors:
    def test_guess_missing_body(self, client, puzzle):
        r = client.post("/api/game/guess", json={})
        assert r.status_code == 400
        body = r.json()
        assert body["code"] == "INVALID_PAYLOAD"
        assert body["message"] == "Invalid payload"
        fields = [e["field"] for e in body["details"]["errors"]]
        assert "guess" in fields

    def test_blank_guess(self, client, puzzle):
        r = client.post("/api/game/guess", json={"guess": "    "})
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_PAYLOAD"

    def test_complete_guesses_out_of_range(self, client):
        r = client.post("/api/game/complete", json={"guesses_used": 9, "won": True})
        assert r.status_code == 400

    @pytest.mark.parametrize("username", ["ab", "x" * 21, "has space", "emoji🙂"])
    def test_bad_username(self, client, headers_for, username):
        r = client.post("/api/user/profile", json={"username": username}, headers=headers_for())
        assert r.status_code == 400
        assert r.json()["code"] == "INVALID_PAYLOAD"


class TestAuthErrors:
    def test_missing_token(self, client):
        r = client.get("/api/user/profile")
        assert r.status_code == 401
        assert r.json()["code"] == "UNAUTHORIZED"

    def test_bad_token(self, client):
        r = client.get("/api/user/profile", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401
        assert r.json()["message"] == "Invalid or expired token"

    def test_no_puzzle_envelope(self, client):
        r = client.get("/api/game/today")
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "NO_PUZZLE"
        assert body["message"] == "Today's song not set"


class _UnreachableDB:
    def get(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestDatabaseErrors:
    def test_db_failure_envelope(self, client, headers_for):
        def broken_db():
            yield _UnreachableDB()
        app.dependency_overrides[get_db] = broken_db

        r = client.get("/api/user/profile", headers=headers_for())
        assert r.status_code == 500
        assert r.json() == {"code": "PERSISTENCE_ERROR", "message": "Database operation failed"}
