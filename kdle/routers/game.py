"""
Game router.

GET  /api/game/today
POST /api/game/guess
GET  /api/game/hint
GET  /api/game/solution
POST /api/game/complete
POST /api/game/reset
POST /api/game/submit     (auth)
GET  /api/game/stats      (auth)

Anonymous players keep their state in signed cookies; a valid bearer
token moves the same state server-side.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from kdle.core.dates import game_today, now_utc
from kdle.core.rate_limit import RateLimiter, get_rate_limiter
from kdle.core.security import AuthUser, get_current_user, get_optional_user
from kdle.db.base import get_db
from kdle.schemas.common import OkResponse
from kdle.schemas.game import (
    CompleteRequest,
    CompleteResponse,
    GameStatsResponse,
    GuessRequest,
    GuessResponse,
    HintResponse,
    SolutionResponse,
    StatsOut,
    SubmitRequest,
    SubmitResponse,
    TodayResponse,
)
from kdle.core.errors import SolutionLockedError
from kdle.services import progress, session
from kdle.services.catalog import SpotifyClient, get_catalog_client
from kdle.services.game import GuessState, Stats, apply_result, build_hint, evaluate_guess
from kdle.services.puzzle import get_daily, require_daily, resolve_preview_url
from kdle.services.stats import get_result, get_user_stats, record_result

router = APIRouter(prefix="/api/game", tags=["game"])

GUESS_LIMIT_PER_MINUTE = 30
SUBMIT_LIMIT_PER_MINUTE = 5


# ---------------------------------------------------------------------------
# State plumbing
# ---------------------------------------------------------------------------

def _load_state(request: Request, db: Session, user: Optional[AuthUser]) -> GuessState:
    day = game_today()
    if user is not None:
        return progress.load_state(db, user.id, day)
    return session.decode_state(request.cookies.get(session.STATE_COOKIE), day)


def _store_state(response: Response, db: Session, user: Optional[AuthUser], state: GuessState) -> None:
    if user is not None:
        progress.save_state(db, user.id, state)
    else:
        session.write_state(response, state)


def _client_key(request: Request, user: Optional[AuthUser]) -> str:
    if user is not None:
        return user.id
    return request.client.host if request.client else "anonymous"


def _stats_out(stats: Stats) -> StatsOut:
    return StatsOut(
        streak=stats.streak,
        longest_streak=stats.longest_streak,
        total_games=stats.total_games,
        total_wins=stats.total_wins,
        win_rate=stats.win_rate,
    )


# ---------------------------------------------------------------------------
# GET /api/game/today
# ---------------------------------------------------------------------------

@router.get(
    "/today",
    response_model=TodayResponse,
    summary="Today's puzzle",
    responses={404: {"description": "No song scheduled for today."}},
)
def today(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: Optional[AuthUser] = Depends(get_optional_user),
    catalog: SpotifyClient = Depends(get_catalog_client),
):
    """
    Return the audio preview for today's song plus the caller's progress.
    If the song has no stored preview the fallback finder runs once and
    the result is saved.
    """
    puzzle = require_daily(db, game_today())
    preview_url = resolve_preview_url(db, puzzle, catalog)
    state = _load_state(request, db, user)

    response.headers["Cache-Control"] = "no-store"
    return TodayResponse(
        date=str(puzzle.date),
        preview_url=preview_url,
        hint_level=state.hint_level,
        guesses_used=state.guesses,
        won=state.won,
        phase=state.phase.value,
        album_image=puzzle.album_image if state.hint_level >= 2 or state.won else None,
    )


# ---------------------------------------------------------------------------
# POST /api/game/guess
# ---------------------------------------------------------------------------

@router.post(
    "/guess",
    response_model=GuessResponse,
    summary="Submit a guess for today's song",
    responses={
        404: {"description": "No song scheduled for today."},
        409: {"description": "Game already won or out of guesses."},
        429: {"description": "Too many guesses."},
    },
)
def guess(
    payload: GuessRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: Optional[AuthUser] = Depends(get_optional_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Compare the guess to today's title (and artist). A wrong guess unlocks
    the next hint level; a right one ends the game. Guesses after the end
    are rejected with **409** and the stored state is left as it was.
    """
    limiter.enforce(f"guess:{_client_key(request, user)}", GUESS_LIMIT_PER_MINUTE, 60)

    puzzle = require_daily(db, game_today())
    state = _load_state(request, db, user)
    outcome = evaluate_guess(state, payload.guess, puzzle)
    _store_state(response, db, user, outcome.state)

    return GuessResponse(
        correct=outcome.correct,
        artist_correct=outcome.artist_correct,
        remaining_guesses=outcome.state.remaining_guesses,
        next_hint_level=outcome.state.hint_level,
        message=outcome.message,
    )


# ---------------------------------------------------------------------------
# GET /api/game/hint
# ---------------------------------------------------------------------------

@router.get("/hint", response_model=HintResponse, summary="Current hint")
def hint(
    request: Request,
    db: Session = Depends(get_db),
    user: Optional[AuthUser] = Depends(get_optional_user),
):
    """The clue for the caller's hint level. Level 0 still gets the release year."""
    puzzle = require_daily(db, game_today())
    state = _load_state(request, db, user)
    h = build_hint(state.hint_level, puzzle)
    return HintResponse(hint_level=h.hint_level, hint=h.hint)


# ---------------------------------------------------------------------------
# GET /api/game/solution
# ---------------------------------------------------------------------------

@router.get(
    "/solution",
    response_model=SolutionResponse,
    summary="Reveal today's answer (winners only)",
    responses={403: {"description": "Locked until the caller has won."}},
)
def solution(
    request: Request,
    db: Session = Depends(get_db),
    user: Optional[AuthUser] = Depends(get_optional_user),
):
    puzzle = require_daily(db, game_today())
    state = _load_state(request, db, user)
    if not state.won:
        raise SolutionLockedError()
    return SolutionResponse(title=puzzle.title, artist=puzzle.artist)


# ---------------------------------------------------------------------------
# POST /api/game/complete
# ---------------------------------------------------------------------------

@router.post("/complete", response_model=CompleteResponse, summary="Record a finished game")
def complete(
    payload: CompleteRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    user: Optional[AuthUser] = Depends(get_optional_user),
):
    """
    Fold today's result into the streak. Signed-in players update their
    stored stats; anonymous players get an updated stats cookie.
    Completing the same day twice changes nothing.
    """
    day = game_today()
    if user is not None:
        puzzle = get_daily(db, day)
        outcome = record_result(
            db,
            user,
            day,
            won=payload.won,
            song_id=puzzle.song_id if puzzle else None,
            attempts=payload.guesses_used,
        )
        stats = outcome.stats
    else:
        current = session.decode_stats(request.cookies.get(session.STATS_COOKIE))
        stats = apply_result(current, day, payload.won, now=now_utc())
        session.write_stats(response, stats)

    return CompleteResponse(streak=stats.streak, longest_streak=stats.longest_streak)


# ---------------------------------------------------------------------------
# POST /api/game/reset
# ---------------------------------------------------------------------------

@router.post("/reset", response_model=OkResponse, summary="Clear today's guess state")
def reset(
    response: Response,
    db: Session = Depends(get_db),
    user: Optional[AuthUser] = Depends(get_optional_user),
):
    session.clear_state(response)
    if user is not None:
        progress.clear_state(db, user.id, game_today())
    return OkResponse()


# ---------------------------------------------------------------------------
# POST /api/game/submit
# ---------------------------------------------------------------------------

@router.post(
    "/submit",
    response_model=SubmitResponse,
    summary="Save a signed-in player's full game",
    responses={
        401: {"description": "Missing or invalid bearer token."},
        404: {"description": "No song scheduled for today."},
        429: {"description": "More than 5 submissions per minute."},
    },
)
def submit(
    payload: SubmitRequest,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Upsert the day's GameResult with every guess and update stats.
    A guess counts as correct only when both artist and title matched.
    """
    limiter.enforce(f"submit:{user.id}", SUBMIT_LIMIT_PER_MINUTE, 60)

    day = game_today()
    puzzle = require_daily(db, day)
    guesses = [
        {
            "artist": g.artist,
            "title": g.title,
            "artist_correct": g.artist_correct,
            "title_correct": g.title_correct,
            "guess_text": f"{g.artist} - {g.title}" if g.title else g.artist,
            "is_correct": g.artist_correct and g.title_correct,
            "attempt_number": i + 1,
        }
        for i, g in enumerate(payload.guesses)
    ]
    outcome = record_result(
        db,
        user,
        day,
        won=payload.won,
        guesses=guesses,
        completed=payload.completed,
        song_id=puzzle.song_id,
    )
    return SubmitResponse(recorded=outcome.recorded, stats=_stats_out(outcome.stats))


# ---------------------------------------------------------------------------
# GET /api/game/stats
# ---------------------------------------------------------------------------

@router.get(
    "/stats",
    response_model=GameStatsResponse,
    summary="Signed-in player's stats and today's result",
    responses={401: {"description": "Missing or invalid bearer token."}},
)
def game_stats(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    day = game_today()
    stats = get_user_stats(db, user.id, day)
    result = get_result(db, user.id, day)
    return GameStatsResponse(
        stats=_stats_out(stats),
        today_completed=bool(result and result.completed),
        today_won=bool(result and result.won),
        today_guesses=list(result.guesses) if result else [],
    )
