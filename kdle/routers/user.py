"""
User router.

GET    /api/user/profile
POST   /api/user/profile
DELETE /api/user/profile
GET    /api/user/stats
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kdle.core.dates import game_today
from kdle.core.rate_limit import RateLimiter, get_rate_limiter
from kdle.core.security import AuthUser, get_current_user
from kdle.db.base import get_db
from kdle.schemas.game import StatsOut
from kdle.schemas.user import (
    AccountDeletedResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
)
from kdle.services.profile import delete_account_data, get_profile, set_username
from kdle.services.stats import get_user_stats

router = APIRouter(prefix="/api/user", tags=["user"])

PROFILE_LIMIT_PER_MINUTE = 3


@router.get("/profile", response_model=ProfileResponse, summary="Caller's profile")
def read_profile(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    profile = get_profile(db, user.id)
    return ProfileResponse(
        user_id=user.id,
        email=user.email,
        username=profile.username if profile else None,
        profile_created=profile is not None,
        created_at=profile.created_at.isoformat() if profile and profile.created_at else None,
        updated_at=profile.updated_at.isoformat() if profile and profile.updated_at else None,
    )


@router.post(
    "/profile",
    response_model=ProfileUpdateResponse,
    summary="Set the caller's display name",
    responses={
        409: {"description": "Username already taken."},
        429: {"description": "More than 3 updates per minute."},
    },
)
def update_profile(
    payload: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    limiter.enforce(f"profile:{user.id}", PROFILE_LIMIT_PER_MINUTE, 60)
    profile = set_username(db, user.id, payload.username)
    return ProfileUpdateResponse(username=profile.username)


@router.delete("/profile", response_model=AccountDeletedResponse, summary="Delete the caller's data")
def delete_profile(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    """
    Remove the profile, stats, results and saved guess state. The login
    itself belongs to the auth provider and is removed there.
    """
    delete_account_data(db, user.id)
    return AccountDeletedResponse()


@router.get("/stats", response_model=StatsOut, summary="Caller's cumulative stats")
def user_stats(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    stats = get_user_stats(db, user.id, game_today())
    return StatsOut(
        streak=stats.streak,
        longest_streak=stats.longest_streak,
        total_games=stats.total_games,
        total_wins=stats.total_wins,
        win_rate=stats.win_rate,
    )
