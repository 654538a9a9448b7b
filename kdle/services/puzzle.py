"""
Daily puzzle lookup: the song assigned to a calendar day, flattened.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from kdle.core.errors import CatalogError, NoPuzzleError
from kdle.models.daily_song import DailySong
from kdle.models.song import Song
from kdle.services.catalog import SpotifyClient

logger = logging.getLogger(__name__)


@dataclass
class DailyPuzzle:
    date: date
    song_id: int
    spotify_id: str
    title: str
    artist: str
    preview_url: Optional[str]
    release_year: Optional[int]
    album_image: Optional[str]


def _to_puzzle(row: DailySong) -> DailyPuzzle:
    s = row.song
    return DailyPuzzle(
        date=row.date,
        song_id=s.id,
        spotify_id=s.spotify_id,
        title=s.title,
        artist=s.artist,
        preview_url=s.preview_url,
        release_year=s.release_year,
        album_image=s.album_image,
    )


def get_daily(db: Session, day: date) -> Optional[DailyPuzzle]:
    row = db.query(DailySong).filter(DailySong.date == day).first()
    if row is None or row.song is None:
        return None
    return _to_puzzle(row)


def require_daily(db: Session, day: date) -> DailyPuzzle:
    puzzle = get_daily(db, day)
    if puzzle is None:
        raise NoPuzzleError(day)
    return puzzle


def resolve_preview_url(
    db: Session,
    puzzle: DailyPuzzle,
    catalog: SpotifyClient,
) -> Optional[str]:
    """
    The stored preview, or the first fallback candidate. A found fallback is
    written back to the song so the lookup only happens once.
    """
    if puzzle.preview_url:
        return puzzle.preview_url
    try:
        urls = catalog.find_preview_urls(puzzle.title, puzzle.artist, 2)
    except CatalogError as exc:
        logger.warning("Preview fallback failed for song %s: %s", puzzle.spotify_id, exc)
        return None
    if not urls:
        return None

    preview = urls[0]
    song = db.get(Song, puzzle.song_id)
    if song is not None:
        song.preview_url = preview
        db.commit()
    puzzle.preview_url = preview
    return preview
