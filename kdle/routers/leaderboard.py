"""
Leaderboard router.

GET /api/leaderboard?type=current_streak|longest_streak|total_wins|win_rate&limit=10
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kdle.db.base import get_db
from kdle.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse
from kdle.services.stats import LeaderboardType, get_leaderboard

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse, summary="Top players")
def leaderboard(
    type: Optional[str] = Query(
        default="current_streak",
        description="Ranking key. Unknown values fall back to current_streak.",
        examples=["longest_streak"],
    ),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    board_type = LeaderboardType.parse(type)
    rows = get_leaderboard(db, board_type, limit)
    return LeaderboardResponse(
        leaderboard=[LeaderboardEntry.model_validate(r) for r in rows],
        type=board_type.value,
    )
