"""
Admin schemas: song curation, scheduling, calendar and analytics.
"""
from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator


class SongOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    spotify_id: str
    title: str
    artist: str
    album_image: Optional[str] = None
    release_year: Optional[int] = None
    preview_url: Optional[str] = None
    difficulty_tag: str = "easy"


class SongBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    spotify_id: str
    title: str
    artist: str
    album_image: Optional[str] = None


class AddSongRequest(BaseModel):
    spotify_id: Annotated[str, Field(min_length=5, max_length=64)]


class AddSongResponse(BaseModel):
    ok: bool = True
    spotify_id: str
    song: SongOut


class SongRequest(BaseModel):
    spotify_id: Annotated[str, Field(min_length=1, max_length=64)]
    title: Annotated[str, Field(min_length=1, max_length=256)]
    artist: Annotated[str, Field(min_length=1, max_length=256)]
    preview_url: Optional[HttpUrl] = None
    difficulty_tag: Optional[str] = Field(default=None, max_length=32)
    release_year: Optional[int] = Field(default=None, ge=1900, le=2100)


class EnrichRequest(BaseModel):
    spotify_id: Annotated[str, Field(min_length=5, max_length=64)]
    override_preview: bool = False


class EnrichResponse(BaseModel):
    ok: bool = True
    album_image: Optional[str] = None
    release_year: Optional[int] = None
    preview_url: Optional[str] = None


class ScheduleRequest(BaseModel):
    date: dt.date
    spotify_id: Optional[str] = None
    song_id: Optional[int] = None

    @model_validator(mode="after")
    def one_song_reference(self) -> "ScheduleRequest":
        if not self.spotify_id and self.song_id is None:
            raise ValueError("spotify_id or song_id is required")
        return self


class ScheduleResponse(BaseModel):
    ok: bool = True
    date: str
    song: SongBrief


class UnscheduleRequest(BaseModel):
    date: dt.date


class UnscheduleResponse(BaseModel):
    ok: bool = True
    date: str
    removed: bool


class CalendarDay(BaseModel):
    date: str
    song: SongBrief


class CalendarResponse(BaseModel):
    year: int
    month: int
    days: list[CalendarDay]


class SongListResponse(BaseModel):
    songs: list[SongOut]
    today: Optional[CalendarDay] = None


class AnalyticsResponse(BaseModel):
    users: dict[str, Any]
    games: dict[str, Any]
    content: dict[str, Any]
    streaks: dict[str, Any]
    activity: dict[str, Any]
