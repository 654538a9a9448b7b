"""
Stats service: completed-game recording, per-user stats and the leaderboard.

Streak arithmetic lives in `kdle.services.game`; this module only loads and
stores rows around it.

Public API
----------
record_result(db, user, day, won, ...)   -> RecordOutcome
get_user_stats(db, user_id, today, now)  -> Stats
get_result(db, user_id, day)             -> GameResult | None
get_leaderboard(db, board_type, limit)   -> list[LeaderboardRow]
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kdle.core.config import settings
from kdle.core.dates import now_utc
from kdle.core.errors import PersistenceError
from kdle.core.security import AuthUser
from kdle.models.game_result import GameResult
from kdle.models.user_profile import UserProfile
from kdle.models.user_stats import UserStats
from kdle.services.game import Stats, apply_result, default_stats, should_reset_streak

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row <-> Stats
# ---------------------------------------------------------------------------

def _row_to_stats(row: Optional[UserStats]) -> Stats:
    if row is None:
        return default_stats()
    return Stats(
        streak=row.streak,
        longest_streak=max(row.longest_streak, row.streak),
        total_games=row.total_games,
        total_wins=row.total_wins,
        last_result_date=row.last_result_date,
        updated_at=row.updated_at,
    )


def _write_stats(row: UserStats, stats: Stats) -> None:
    row.streak = stats.streak
    row.longest_streak = stats.longest_streak
    row.total_games = stats.total_games
    row.total_wins = stats.total_wins
    row.last_result_date = stats.last_result_date
    if stats.updated_at is not None:
        row.updated_at = stats.updated_at


def get_result(db: Session, user_id: str, day: date) -> Optional[GameResult]:
    return (
        db.query(GameResult)
        .filter(GameResult.user_id == user_id, GameResult.date == day)
        .first()
    )


# ---------------------------------------------------------------------------
# Recording a game
# ---------------------------------------------------------------------------

@dataclass
class RecordOutcome:
    stats: Stats
    recorded: bool  # False when the day was already completed (no-op)


def record_result(
    db: Session,
    user: AuthUser,
    day: date,
    won: bool,
    guesses: Optional[list[dict[str, Any]]] = None,
    completed: bool = True,
    song_id: Optional[int] = None,
    attempts: Optional[int] = None,
    now: Optional[datetime] = None,
) -> RecordOutcome:
    """
    Upsert the user's GameResult for `day` and, when the game is complete,
    fold it into UserStats. Once a day is completed any further call for
    that day changes nothing.
    """
    now = now or now_utc()
    stats_row = db.get(UserStats, user.id)
    existing = get_result(db, user.id, day)

    if existing is not None and existing.completed:
        return RecordOutcome(stats=_row_to_stats(stats_row), recorded=False)

    if existing is None:
        existing = GameResult(user_id=user.id, date=day, guesses=[], attempts=0)
        db.add(existing)
    # Fields the caller leaves out keep what an earlier partial save stored
    if song_id is not None:
        existing.song_id = song_id
    if guesses is not None:
        existing.guesses = guesses
    if attempts is not None:
        existing.attempts = attempts
    elif guesses is not None:
        existing.attempts = len(guesses)
    existing.completed = completed
    existing.won = won and completed

    stats = _row_to_stats(stats_row)
    if completed:
        stats = apply_result(stats, day, won, now=now)
        if stats_row is None:
            stats_row = UserStats(user_id=user.id)
            db.add(stats_row)
        _write_stats(stats_row, stats)
        if user.email:
            stats_row.email = user.email

    try:
        db.commit()
    except IntegrityError:
        # Concurrent completion for the same day won the race
        db.rollback()
        logger.info("Result for %s on %s already recorded", user.id, day)
        return RecordOutcome(stats=_row_to_stats(db.get(UserStats, user.id)), recorded=False)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("Failed to save game result") from exc

    logger.info("Recorded %s for %s on %s", "win" if won else "loss", user.id, day)
    return RecordOutcome(stats=stats, recorded=True)


def get_user_stats(
    db: Session,
    user_id: str,
    today: date,
    now: Optional[datetime] = None,
) -> Stats:
    """Stored stats, with the streak zeroed if a day went by unplayed."""
    row = db.get(UserStats, user_id)
    if row is None:
        return default_stats()

    now = now or now_utc()
    has_result_today = get_result(db, user_id, today) is not None
    if row.streak > 0 and should_reset_streak(
        row.updated_at, now, has_result_today, hours=settings.STREAK_RESET_HOURS
    ):
        logger.info("Streak for %s lapsed; resetting", user_id)
        row.streak = 0
        db.commit()
    return _row_to_stats(row)


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

class LeaderboardType(str, enum.Enum):
    current_streak = "current_streak"
    longest_streak = "longest_streak"
    total_wins = "total_wins"
    win_rate = "win_rate"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "LeaderboardType":
        try:
            return cls(raw)
        except ValueError:
            return cls.current_streak


@dataclass
class LeaderboardRow:
    rank: int
    username: str
    email: Optional[str]
    current_streak: int
    longest_streak: int
    total_games: int
    total_wins: int
    win_rate: int
    value: int


def _display_name(username: Optional[str], email: Optional[str]) -> str:
    if username:
        return username
    if email:
        return email.split("@")[0]
    return "Anonymous"


def get_leaderboard(
    db: Session,
    board_type: LeaderboardType = LeaderboardType.current_streak,
    limit: int = 10,
) -> list[LeaderboardRow]:
    rows = (
        db.query(UserStats, UserProfile.username)
        .outerjoin(UserProfile, UserProfile.user_id == UserStats.user_id)
        .filter(UserStats.total_games > 0)
        .all()
    )

    entries = []
    for stats, username in rows:
        win_rate = round(stats.total_wins / stats.total_games * 100)
        entries.append({
            "username": _display_name(username, stats.email),
            "email": stats.email,
            "current_streak": stats.streak,
            "longest_streak": stats.longest_streak,
            "total_games": stats.total_games,
            "total_wins": stats.total_wins,
            "win_rate": win_rate,
        })

    key = board_type.value
    # Stable sort keeps insertion order for ties
    entries.sort(key=lambda e: e[key], reverse=True)

    return [
        LeaderboardRow(rank=i + 1, value=e[key], **e)
        for i, e in enumerate(entries[:limit])
    ]
