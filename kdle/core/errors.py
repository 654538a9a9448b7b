"""
Custom exception hierarchy for K-Dle.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class KdleException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def headers(self) -> dict[str, str] | None:
        return None


class InvalidPayloadError(KdleException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "INVALID_PAYLOAD"

    def __init__(self, message: str = "Invalid payload", details: dict[str, Any] | None = None):
        super().__init__(message=message, details=details)


class UnauthorizedError(KdleException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message)


class ForbiddenError(KdleException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message=message)


class SolutionLockedError(KdleException):
    http_status = status.HTTP_403_FORBIDDEN
    code = "SOLUTION_LOCKED"

    def __init__(self):
        super().__init__(message="Solution locked until you win")


class NoPuzzleError(KdleException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NO_PUZZLE"

    def __init__(self, day: date):
        super().__init__(
            message="Today's song not set",
            details={"date": str(day)},
        )


class SongNotFoundError(KdleException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "SONG_NOT_FOUND"

    def __init__(self, ref: str):
        super().__init__(
            message=f"Song {ref} not found.",
            details={"song": ref},
        )


class TrackNotFoundError(KdleException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "TRACK_NOT_FOUND"

    def __init__(self, spotify_id: str):
        super().__init__(
            message="Spotify track not found",
            details={"spotify_id": spotify_id},
        )


class UsernameTakenError(KdleException):
    http_status = status.HTTP_409_CONFLICT
    code = "USERNAME_TAKEN"

    def __init__(self, username: str):
        super().__init__(
            message="Username already taken",
            details={"username": username},
        )


class GameOverError(KdleException):
    http_status = status.HTTP_409_CONFLICT
    code = "GAME_OVER"

    def __init__(self, guesses: int, won: bool):
        reason = "already won" if won else "no guesses remaining"
        super().__init__(
            message=f"Today's game is over: {reason}.",
            details={"guesses": guesses, "won": won},
        )


class RateLimitExceededError(KdleException):
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"

    def __init__(self, remaining: int, reset_at: float, retry_after: int):
        self.remaining = remaining
        self.reset_at = reset_at
        super().__init__(
            message="Too many requests. Please try again later.",
            details={"retry_after": retry_after, "reset_at": int(reset_at)},
        )

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
            "Retry-After": str(self.details["retry_after"]),
        }


class CatalogError(KdleException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "CATALOG_ERROR"

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(
            message=message,
            details={"upstream_status": upstream_status} if upstream_status else {},
        )


class PersistenceError(KdleException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str):
        super().__init__(message=message)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def kdle_exception_handler(request: Request, exc: KdleException) -> JSONResponse:
    if exc.http_status >= 500:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
        headers=exc.headers(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies get a fixed 400 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "code": "INVALID_PAYLOAD",
            "message": "Invalid payload",
            "details": {"errors": field_errors},
        },
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": PersistenceError.code,
            "message": "Database operation failed",
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "Internal server error",
        },
    )
