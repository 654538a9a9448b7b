from typing import Optional
from pydantic import BaseModel, ConfigDict


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    username: str
    email: Optional[str] = None
    current_streak: int
    longest_streak: int
    total_games: int
    total_wins: int
    win_rate: int
    value: int


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntry]
    type: str
