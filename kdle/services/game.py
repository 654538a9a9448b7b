"""
Guess/Hint engine and streak rules.

Pure functions over plain dataclasses: no ORM, no HTTP, no clock reads
unless a `now` is passed in. Routers and the stats service feed these
with data loaded from cookies or the database.

Public API
----------
normalize(text)                              -> str
is_correct_guess(guess, title, artist)       -> bool
is_artist_match(guess, artist)               -> bool
sanitize_state(raw, day)                     -> GuessState
evaluate_guess(state, guess, puzzle)         -> GuessOutcome
build_hint(level, puzzle)                    -> Hint
apply_result(stats, today, won, now)         -> Stats
should_reset_streak(updated_at, now, ...)    -> bool
"""
from __future__ import annotations

import enum
import re
import unicodedata
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Protocol

from kdle.core.errors import GameOverError

MAX_GUESSES = 6
# 1: year, 2: blurred art, 3: artist name, 4: first letter, 5: longer snippet
MAX_HINT_LEVEL = 5

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


# ---------------------------------------------------------------------------
# Text matching
# ---------------------------------------------------------------------------

def normalize(text: str) -> str:
    """Lowercase, drop diacritics, collapse non-alphanumerics to one space."""
    decomposed = unicodedata.normalize("NFKD", (text or "").lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub(" ", stripped).strip()


def is_correct_guess(guess: str, title: str, artist: str) -> bool:
    """
    Title knowledge is required: the guess must equal or contain the title
    (with or without the artist alongside). Artist-only never wins.
    """
    g = normalize(guess)
    t = normalize(title)
    a = normalize(artist)
    if not g or not t:
        return False
    if g == t or t in g:
        return True
    if a and a in g and t in g:
        return True
    return False


def is_artist_match(guess: str, artist: str) -> bool:
    g = normalize(guess)
    a = normalize(artist)
    if not g or not a:
        return False
    return g == a or a in g


# ---------------------------------------------------------------------------
# Per-day guess state
# ---------------------------------------------------------------------------

class Phase(str, enum.Enum):
    fresh = "fresh"
    in_progress = "in_progress"
    completed = "completed"


@dataclass(frozen=True)
class GuessState:
    date: date
    guesses: int = 0      # 0..MAX_GUESSES
    hint_level: int = 0   # 0..MAX_HINT_LEVEL
    won: bool = False

    @property
    def phase(self) -> Phase:
        if self.won or self.guesses >= MAX_GUESSES:
            return Phase.completed
        if self.guesses == 0:
            return Phase.fresh
        return Phase.in_progress

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.completed

    @property
    def remaining_guesses(self) -> int:
        return max(0, MAX_GUESSES - self.guesses)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "guesses": self.guesses,
            "hint_level": self.hint_level,
            "won": self.won,
            "phase": self.phase.value,
        }


def new_state(day: date) -> GuessState:
    return GuessState(date=day)


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


def _as_count(value: Any, ceiling: int) -> Optional[int]:
    """An int in [0, ceiling], or None. Bools and fractions are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < 0 or value > ceiling:
        return None
    return value


def sanitize_state(raw: Any, day: date) -> GuessState:
    """
    Decode client-held or stored state for `day`.

    Anything that is not a well-formed state for that exact day comes back
    as a fresh zeroed state. Never raises.
    """
    if not isinstance(raw, dict):
        return new_state(day)
    if _as_date(raw.get("date")) != day:
        return new_state(day)

    guesses = _as_count(raw.get("guesses"), MAX_GUESSES)
    hint_level = _as_count(raw.get("hint_level", raw.get("hintLevel")), MAX_HINT_LEVEL)
    won = raw.get("won", False)
    if guesses is None or hint_level is None or not isinstance(won, bool):
        return new_state(day)
    # A win needs at least one guess
    if won and guesses == 0:
        return new_state(day)
    return GuessState(date=day, guesses=guesses, hint_level=hint_level, won=won)


def next_hint_level(current: int) -> int:
    return min(current + 1, MAX_HINT_LEVEL)


def apply_guess(state: GuessState, correct: bool) -> GuessState:
    """
    Advance the state by one attempt.

    Raises GameOverError (and leaves `state` alone) once the game is won or
    the attempts are exhausted.
    """
    if state.is_over:
        raise GameOverError(guesses=state.guesses, won=state.won)
    if correct:
        return replace(state, guesses=state.guesses + 1, won=True)
    return replace(
        state,
        guesses=state.guesses + 1,
        hint_level=next_hint_level(state.hint_level),
    )


class PuzzleLike(Protocol):
    title: str
    artist: str
    release_year: Optional[int]
    album_image: Optional[str]


@dataclass
class GuessOutcome:
    state: GuessState
    correct: bool
    artist_correct: bool
    message: str


def evaluate_guess(state: GuessState, guess: str, puzzle: PuzzleLike) -> GuessOutcome:
    correct = is_correct_guess(guess, puzzle.title, puzzle.artist)
    artist_correct = is_artist_match(guess, puzzle.artist)
    updated = apply_guess(state, correct)

    if correct:
        message = "Correct!"
    elif updated.remaining_guesses == 0:
        message = "Out of guesses."
    elif artist_correct:
        message = "Artist is correct! Now name the song."
    else:
        message = "Not quite. Try again."
    return GuessOutcome(
        state=updated,
        correct=correct,
        artist_correct=artist_correct,
        message=message,
    )


@dataclass
class Hint:
    hint_level: int
    hint: str


def build_hint(level: int, puzzle: PuzzleLike) -> Hint:
    safe_level = max(1, min(level, MAX_HINT_LEVEL))
    if safe_level == 1:
        year = puzzle.release_year if puzzle.release_year else "????"
        return Hint(1, f"Released in {year}")
    if safe_level == 2:
        if puzzle.album_image:
            return Hint(2, "Album art unlocked (blurred)")
        return Hint(2, "Album art unavailable")
    if safe_level == 3:
        return Hint(3, f"Artist: {puzzle.artist}")
    if safe_level == 4:
        first = puzzle.title[:1].upper() if puzzle.title else "?"
        return Hint(4, f"First letter of title: {first}")
    return Hint(5, "Longer snippet unlocked")


# ---------------------------------------------------------------------------
# Streaks / cumulative stats
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Stats:
    streak: int = 0
    longest_streak: int = 0
    total_games: int = 0
    total_wins: int = 0
    last_result_date: Optional[date] = None
    updated_at: Optional[datetime] = None

    @property
    def win_rate(self) -> int:
        """Whole percent, 0 when no games."""
        if self.total_games <= 0:
            return 0
        return round(self.total_wins / self.total_games * 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "streak": self.streak,
            "longest_streak": self.longest_streak,
            "total_games": self.total_games,
            "total_wins": self.total_wins,
            "last_result_date": self.last_result_date.isoformat() if self.last_result_date else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def default_stats() -> Stats:
    return Stats()


def _non_negative(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        n = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, n)


def sanitize_stats(raw: Any) -> Stats:
    if not isinstance(raw, dict):
        return default_stats()
    streak = _non_negative(raw.get("streak"))
    longest = max(_non_negative(raw.get("longest_streak")), streak)
    total_games = _non_negative(raw.get("total_games"))
    total_wins = min(_non_negative(raw.get("total_wins")), total_games)

    updated_at = None
    if isinstance(raw.get("updated_at"), str):
        try:
            updated_at = datetime.fromisoformat(raw["updated_at"])
        except ValueError:
            updated_at = None
    return Stats(
        streak=streak,
        longest_streak=longest,
        total_games=total_games,
        total_wins=total_wins,
        last_result_date=_as_date(raw.get("last_result_date")),
        updated_at=updated_at,
    )


def apply_result(
    stats: Stats,
    today: date,
    won: bool,
    now: Optional[datetime] = None,
) -> Stats:
    """
    Fold one completed game into the totals.

    A win extends the streak only if the previous result was yesterday;
    any other win restarts it at 1 and a loss zeroes it. A second result
    for the same day is ignored.
    """
    if stats.last_result_date == today:
        return stats

    if won:
        if stats.last_result_date == today - timedelta(days=1):
            streak = stats.streak + 1
        else:
            streak = 1
    else:
        streak = 0

    return Stats(
        streak=streak,
        longest_streak=max(stats.longest_streak, streak),
        total_games=stats.total_games + 1,
        total_wins=stats.total_wins + (1 if won else 0),
        last_result_date=today,
        updated_at=now if now is not None else stats.updated_at,
    )


def should_reset_streak(
    updated_at: Optional[datetime],
    now: datetime,
    has_result_today: bool,
    hours: int = 24,
) -> bool:
    """Read-time correction for silently skipped days."""
    if updated_at is None or has_result_today:
        return False
    return _naive_utc(now) - _naive_utc(updated_at) > timedelta(hours=hours)


def _naive_utc(value: datetime) -> datetime:
    # SQLite hands back naive UTC timestamps, Postgres aware ones
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
