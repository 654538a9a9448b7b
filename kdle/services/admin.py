"""
Admin service: catalog curation, scheduling and analytics.

Songs are keyed by their Spotify id. Scheduling writes one row per date;
scheduling a date again replaces its song.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from kdle.core.dates import month_bounds, now_utc
from kdle.core.errors import SongNotFoundError, TrackNotFoundError
from kdle.models.daily_song import DailySong
from kdle.models.song import Song
from kdle.models.user_stats import UserStats
from kdle.services.catalog import CatalogTrack, SpotifyClient

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Songs
# ---------------------------------------------------------------------------

def get_song_by_spotify_id(db: Session, spotify_id: str) -> Optional[Song]:
    return db.query(Song).filter(Song.spotify_id == spotify_id).first()


def _fallback_preview(catalog: SpotifyClient, track: CatalogTrack) -> Optional[str]:
    if not track.name:
        return None
    urls = catalog.find_preview_urls(track.name, track.primary_artist, 2)
    return urls[0] if urls else None


def _apply_track(song: Song, track: CatalogTrack) -> None:
    song.title = track.name
    song.artist = track.artist_label
    song.album_image = track.album_image
    song.release_year = track.release_year


def add_song(db: Session, catalog: SpotifyClient, spotify_id: str) -> Song:
    """Fetch a track by id and upsert it into the catalog."""
    track = catalog.get_track_by_id(spotify_id)
    if track is None:
        raise TrackNotFoundError(spotify_id)

    preview_url = track.preview_url or _fallback_preview(catalog, track)

    song = get_song_by_spotify_id(db, spotify_id)
    if song is None:
        song = Song(spotify_id=spotify_id, difficulty_tag="easy")
        db.add(song)
    _apply_track(song, track)
    song.preview_url = preview_url
    db.commit()
    db.refresh(song)
    logger.info("Added song %s (%s - %s)", spotify_id, song.artist, song.title)
    return song


def upsert_song(
    db: Session,
    spotify_id: str,
    title: str,
    artist: str,
    preview_url: Optional[str] = None,
    release_year: Optional[int] = None,
    album_image: Optional[str] = None,
    difficulty_tag: Optional[str] = None,
) -> Song:
    """Manual entry, no catalog round-trip."""
    song = get_song_by_spotify_id(db, spotify_id)
    if song is None:
        song = Song(spotify_id=spotify_id)
        db.add(song)
    song.title = title
    song.artist = artist
    song.preview_url = preview_url
    if release_year is not None:
        song.release_year = release_year
    if album_image is not None:
        song.album_image = album_image
    song.difficulty_tag = difficulty_tag or song.difficulty_tag or "easy"
    db.commit()
    db.refresh(song)
    return song


def enrich_song(
    db: Session,
    catalog: SpotifyClient,
    spotify_id: str,
    override_preview: bool = False,
) -> Song:
    """Re-fetch metadata for a stored song. Identity never changes."""
    song = get_song_by_spotify_id(db, spotify_id)
    if song is None:
        raise SongNotFoundError(spotify_id)
    track = catalog.get_track_by_id(spotify_id)
    if track is None:
        raise TrackNotFoundError(spotify_id)

    preview_url = track.preview_url
    if not preview_url or override_preview:
        preview_url = _fallback_preview(catalog, track) or preview_url

    _apply_track(song, track)
    song.preview_url = preview_url
    db.commit()
    db.refresh(song)
    return song


def list_recent_songs(db: Session, limit: int = 25) -> list[Song]:
    return db.query(Song).order_by(Song.id.desc()).limit(limit).all()


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

def _resolve_song(db: Session, spotify_id: Optional[str], song_id: Optional[int]) -> Song:
    song = None
    if spotify_id:
        song = get_song_by_spotify_id(db, spotify_id)
    elif song_id is not None:
        song = db.get(Song, song_id)
    if song is None:
        raise SongNotFoundError(spotify_id or str(song_id))
    return song


def schedule_song(
    db: Session,
    day: date,
    spotify_id: Optional[str] = None,
    song_id: Optional[int] = None,
) -> DailySong:
    song = _resolve_song(db, spotify_id, song_id)
    row = db.get(DailySong, day)
    if row is None:
        row = DailySong(date=day, song_id=song.id)
        db.add(row)
    else:
        logger.info("Replacing song scheduled for %s", day)
        row.song_id = song.id
    db.commit()
    db.refresh(row)
    return row


def unschedule(db: Session, day: date) -> bool:
    deleted = db.query(DailySong).filter(DailySong.date == day).delete()
    db.commit()
    return deleted > 0


def get_assignment(db: Session, day: date) -> Optional[DailySong]:
    return db.get(DailySong, day)


def get_calendar(db: Session, year: int, month: int) -> list[DailySong]:
    start, end = month_bounds(year, month)
    return (
        db.query(DailySong)
        .filter(DailySong.date >= start, DailySong.date <= end)
        .order_by(DailySong.date.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@dataclass
class Analytics:
    users: dict[str, Any]
    games: dict[str, Any]
    content: dict[str, Any]
    streaks: dict[str, Any]
    activity: dict[str, Any]


def _day_of(ts: datetime) -> str:
    return ts.date().isoformat()


def get_analytics(db: Session, now: Optional[datetime] = None) -> Analytics:
    now = now or now_utc()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)
    # SQLite stores naive timestamps
    if db.get_bind().dialect.name == "sqlite":
        week_ago = week_ago.replace(tzinfo=None)
        month_ago = month_ago.replace(tzinfo=None)

    total_users = db.query(func.count(UserStats.user_id)).scalar() or 0
    active_users = (
        db.query(func.count(UserStats.user_id))
        .filter(UserStats.updated_at >= week_ago)
        .scalar()
        or 0
    )
    total_games = db.query(func.coalesce(func.sum(UserStats.total_games), 0)).scalar() or 0
    total_wins = db.query(func.coalesce(func.sum(UserStats.total_wins), 0)).scalar() or 0
    win_rate = (total_wins / total_games * 100) if total_games > 0 else 0

    top_streaks = [
        r.longest_streak
        for r in db.query(UserStats.longest_streak)
        .order_by(UserStats.longest_streak.desc())
        .limit(10)
        .all()
    ]

    total_songs = db.query(func.count(Song.id)).scalar() or 0
    scheduled = db.query(func.count(DailySong.date)).scalar() or 0

    recent = (
        db.query(UserStats.updated_at)
        .filter(UserStats.updated_at >= month_ago)
        .all()
    )
    by_day = Counter(_day_of(r.updated_at) for r in recent)

    return Analytics(
        users={
            "total": total_users,
            "active": active_users,
            "retention": (active_users / total_users * 100) if total_users else 0,
        },
        games={
            "total": total_games,
            "wins": total_wins,
            "win_rate": round(win_rate, 2),
        },
        content={
            "total_songs": total_songs,
            "scheduled_songs": scheduled,
            "unscheduled_songs": max(0, total_songs - scheduled),
        },
        streaks={
            "top_streaks": top_streaks,
            "average_streak": round(sum(top_streaks) / len(top_streaks), 2) if top_streaks else 0,
        },
        activity={
            "daily_activity": dict(sorted(by_day.items(), reverse=True)),
            "total_days": len(by_day),
        },
    )
