"""
User profile service: display names and account data removal.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kdle.core.errors import UsernameTakenError
from kdle.models.game_result import GameResult
from kdle.models.guess_session import GuessSession
from kdle.models.user_profile import UserProfile
from kdle.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> Optional[UserProfile]:
    return db.get(UserProfile, user_id)


def set_username(db: Session, user_id: str, username: str) -> UserProfile:
    """Create or rename the profile. Usernames are unique across users."""
    taken = (
        db.query(UserProfile.user_id)
        .filter(UserProfile.username == username, UserProfile.user_id != user_id)
        .first()
    )
    if taken is not None:
        raise UsernameTakenError(username)

    profile = db.get(UserProfile, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id, username=username)
        db.add(profile)
    else:
        profile.username = username
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UsernameTakenError(username) from exc
    db.refresh(profile)
    return profile


def delete_account_data(db: Session, user_id: str) -> dict[str, int]:
    """Remove every row this service holds for the user."""
    counts = {
        "profiles": db.query(UserProfile).filter(UserProfile.user_id == user_id).delete(),
        "stats": db.query(UserStats).filter(UserStats.user_id == user_id).delete(),
        "results": db.query(GameResult).filter(GameResult.user_id == user_id).delete(),
        "sessions": db.query(GuessSession).filter(GuessSession.user_id == user_id).delete(),
    }
    db.commit()
    logger.info("Deleted account data for %s: %s", user_id, counts)
    return counts
