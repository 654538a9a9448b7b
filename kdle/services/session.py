"""
Client-held game state for anonymous play.

Two cookies, each an HS256-signed token over a versioned payload:
  kdle_state  - today's GuessState
  kdle_stats  - long-lived Stats

Decoding is one fallible step: a bad signature, unknown version or
malformed body yields the safe default, never an error.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

import jwt
from fastapi import Response

from kdle.core.config import settings
from kdle.services.game import GuessState, Stats, default_stats, new_state, sanitize_state, sanitize_stats

logger = logging.getLogger(__name__)

STATE_COOKIE = "kdle_state"
STATS_COOKIE = "kdle_stats"
PAYLOAD_VERSION = 1

_STATE_MAX_AGE = 60 * 60 * 24 * 2
_STATS_MAX_AGE = 60 * 60 * 24 * 365


def _encode(kind: str, data: dict[str, Any]) -> str:
    return jwt.encode(
        {"v": PAYLOAD_VERSION, "kind": kind, "data": data},
        settings.SECRET_KEY,
        algorithm="HS256",
    )


def _decode(kind: str, token: Optional[str]) -> Optional[dict[str, Any]]:
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    except jwt.PyJWTError:
        logger.debug("Discarding %s cookie with bad signature", kind)
        return None
    if payload.get("v") != PAYLOAD_VERSION or payload.get("kind") != kind:
        return None
    data = payload.get("data")
    return data if isinstance(data, dict) else None


def encode_state(state: GuessState) -> str:
    return _encode("state", state.to_dict())


def decode_state(token: Optional[str], day: date) -> GuessState:
    data = _decode("state", token)
    if data is None:
        return new_state(day)
    return sanitize_state(data, day)


def encode_stats(stats: Stats) -> str:
    return _encode("stats", stats.to_dict())


def decode_stats(token: Optional[str]) -> Stats:
    data = _decode("stats", token)
    if data is None:
        return default_stats()
    return sanitize_stats(data)


def _set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


def write_state(response: Response, state: GuessState) -> None:
    _set_cookie(response, STATE_COOKIE, encode_state(state), _STATE_MAX_AGE)


def write_stats(response: Response, stats: Stats) -> None:
    _set_cookie(response, STATS_COOKIE, encode_stats(stats), _STATS_MAX_AGE)


def clear_state(response: Response) -> None:
    response.delete_cookie(STATE_COOKIE, path="/", httponly=True, samesite="lax")
