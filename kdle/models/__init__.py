from .song import Song
from .daily_song import DailySong
from .game_result import GameResult
from .guess_session import GuessSession
from .user_stats import UserStats
from .user_profile import UserProfile

__all__ = [
    "Song",
    "DailySong",
    "GameResult",
    "GuessSession",
    "UserStats",
    "UserProfile",
]
