"""
Admin router. Every route requires a bearer token whose email is on the
ADMIN_EMAILS allowlist.

POST /api/admin/add-song
POST /api/admin/song
POST /api/admin/enrich
POST /api/admin/schedule
POST /api/admin/unschedule
GET  /api/admin/songs
GET  /api/admin/calendar
POST /api/admin/search-spotify
GET  /api/admin/analytics
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kdle.core.dates import game_today
from kdle.core.security import require_admin
from kdle.db.base import get_db
from kdle.models.daily_song import DailySong
from kdle.schemas.admin import (
    AddSongRequest,
    AddSongResponse,
    AnalyticsResponse,
    CalendarDay,
    CalendarResponse,
    EnrichRequest,
    EnrichResponse,
    ScheduleRequest,
    ScheduleResponse,
    SongBrief,
    SongListResponse,
    SongOut,
    SongRequest,
    UnscheduleRequest,
    UnscheduleResponse,
)
from kdle.schemas.catalog import CatalogSearchRequest, CatalogSearchResponse, CatalogTrackOut
from kdle.services import admin as admin_service
from kdle.services.catalog import SpotifyClient, get_catalog_client

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Missing or invalid bearer token."},
        403: {"description": "Email not on the admin allowlist."},
    },
)


def _calendar_day(row: DailySong) -> CalendarDay:
    return CalendarDay(date=str(row.date), song=SongBrief.model_validate(row.song))


# ---------------------------------------------------------------------------
# Songs
# ---------------------------------------------------------------------------

@router.post(
    "/add-song",
    response_model=AddSongResponse,
    summary="Add a song by Spotify id",
    responses={404: {"description": "Spotify track not found."}},
)
def add_song(
    payload: AddSongRequest,
    db: Session = Depends(get_db),
    catalog: SpotifyClient = Depends(get_catalog_client),
):
    """Fetch the track's metadata and upsert it. Missing previews go through the fallback finder."""
    song = admin_service.add_song(db, catalog, payload.spotify_id)
    return AddSongResponse(spotify_id=song.spotify_id, song=SongOut.model_validate(song))


@router.post("/song", response_model=SongOut, summary="Create or update a song by hand")
def upsert_song(payload: SongRequest, db: Session = Depends(get_db)):
    song = admin_service.upsert_song(
        db,
        spotify_id=payload.spotify_id,
        title=payload.title,
        artist=payload.artist,
        preview_url=str(payload.preview_url) if payload.preview_url else None,
        release_year=payload.release_year,
        difficulty_tag=payload.difficulty_tag,
    )
    return SongOut.model_validate(song)


@router.post(
    "/enrich",
    response_model=EnrichResponse,
    summary="Refresh a song's metadata from Spotify",
    responses={404: {"description": "Song or Spotify track not found."}},
)
def enrich(
    payload: EnrichRequest,
    db: Session = Depends(get_db),
    catalog: SpotifyClient = Depends(get_catalog_client),
):
    """
    Re-fetch album art, release year, title and artist. The preview is
    looked up again when missing or when `override_preview` is set.
    """
    song = admin_service.enrich_song(db, catalog, payload.spotify_id, payload.override_preview)
    return EnrichResponse(
        album_image=song.album_image,
        release_year=song.release_year,
        preview_url=song.preview_url,
    )


@router.get("/songs", response_model=SongListResponse, summary="Recently added songs")
def list_songs(
    limit: int = Query(default=25, ge=1, le=200),
    db: Session = Depends(get_db),
):
    songs = admin_service.list_recent_songs(db, limit)
    today = admin_service.get_assignment(db, game_today())
    return SongListResponse(
        songs=[SongOut.model_validate(s) for s in songs],
        today=_calendar_day(today) if today else None,
    )


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

@router.post(
    "/schedule",
    response_model=ScheduleResponse,
    summary="Assign a song to a date",
    responses={404: {"description": "Song not found."}},
)
def schedule(payload: ScheduleRequest, db: Session = Depends(get_db)):
    """One song per date: scheduling a date that already has one replaces it."""
    row = admin_service.schedule_song(
        db, payload.date, spotify_id=payload.spotify_id, song_id=payload.song_id
    )
    return ScheduleResponse(date=str(row.date), song=SongBrief.model_validate(row.song))


@router.post("/unschedule", response_model=UnscheduleResponse, summary="Clear a date")
def unschedule(payload: UnscheduleRequest, db: Session = Depends(get_db)):
    removed = admin_service.unschedule(db, payload.date)
    return UnscheduleResponse(date=str(payload.date), removed=removed)


@router.get("/calendar", response_model=CalendarResponse, summary="Assignments for a month")
def calendar(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    db: Session = Depends(get_db),
):
    rows = admin_service.get_calendar(db, year, month)
    return CalendarResponse(year=year, month=month, days=[_calendar_day(r) for r in rows])


# ---------------------------------------------------------------------------
# Catalog search / analytics
# ---------------------------------------------------------------------------

@router.post("/search-spotify", response_model=CatalogSearchResponse, summary="Raw catalog search")
def search_spotify(
    payload: CatalogSearchRequest,
    catalog: SpotifyClient = Depends(get_catalog_client),
):
    tracks = catalog.search_tracks(payload.query, limit=payload.limit)
    return CatalogSearchResponse(results=[
        CatalogTrackOut(
            spotify_id=t.id,
            title=t.name,
            artist=t.primary_artist or "Unknown Artist",
            album=t.album_name or "Unknown Album",
            release_year=t.release_year,
            album_image=t.album_image,
            preview_url=t.preview_url,
            duration_ms=t.duration_ms,
            popularity=t.popularity,
            external_url=t.external_url,
        )
        for t in tracks
    ])


@router.get("/analytics", response_model=AnalyticsResponse, summary="Usage overview")
def analytics(db: Session = Depends(get_db)):
    a = admin_service.get_analytics(db)
    return AnalyticsResponse(
        users=a.users,
        games=a.games,
        content=a.content,
        streaks=a.streaks,
        activity=a.activity,
    )
