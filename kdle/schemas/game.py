"""
Game schemas.

GET  /api/game/today     → TodayResponse
POST /api/game/guess     → GuessRequest    → GuessResponse
GET  /api/game/hint      → HintResponse
GET  /api/game/solution  → SolutionResponse
POST /api/game/complete  → CompleteRequest → CompleteResponse
POST /api/game/submit    → SubmitRequest   → SubmitResponse
GET  /api/game/stats     → GameStatsResponse
"""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kdle.services.game import MAX_GUESSES, MAX_HINT_LEVEL


class TodayResponse(BaseModel):
    date: str
    preview_url: Optional[str] = None
    hint_level: int = Field(ge=0, le=MAX_HINT_LEVEL)
    max_guesses: int = MAX_GUESSES
    guesses_used: int = 0
    won: bool = False
    phase: str = Field(description='"fresh" | "in_progress" | "completed"')
    album_image: Optional[str] = Field(
        default=None,
        description="Only present once hint level 2 (blurred album art) is unlocked.",
    )


class GuessRequest(BaseModel):
    guess: Annotated[str, Field(
        min_length=1,
        max_length=200,
        description="Free-text guess, e.g. 'NewJeans - Hype Boy' or just 'Hype Boy'.",
        examples=["Hype Boy"],
    )]

    @field_validator("guess")
    @classmethod
    def guess_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("guess must not be blank")
        return stripped


class GuessResponse(BaseModel):
    correct: bool
    artist_correct: bool
    remaining_guesses: int
    next_hint_level: int
    message: str


class HintResponse(BaseModel):
    hint_level: int
    hint: str


class SolutionResponse(BaseModel):
    title: str
    artist: str


class CompleteRequest(BaseModel):
    guesses_used: int = Field(ge=0, le=MAX_GUESSES)
    won: bool


class CompleteResponse(BaseModel):
    streak: int
    longest_streak: int


class SubmittedGuess(BaseModel):
    artist: str = ""
    title: str = ""
    artist_correct: bool
    title_correct: bool


class SubmitRequest(BaseModel):
    guesses: list[SubmittedGuess] = Field(max_length=MAX_GUESSES)
    completed: bool
    won: bool


class StatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    streak: int
    longest_streak: int
    total_games: int
    total_wins: int
    win_rate: int


class SubmitResponse(BaseModel):
    success: bool = True
    recorded: bool
    stats: StatsOut


class GameStatsResponse(BaseModel):
    stats: StatsOut
    today_completed: bool
    today_won: bool
    today_guesses: list[dict[str, Any]]
