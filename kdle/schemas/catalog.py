"""
Catalog search schemas.

GET  /api/search               → SearchResponse
POST /api/admin/search-spotify → CatalogSearchRequest → CatalogSearchResponse
"""
from typing import Annotated, Optional
from pydantic import BaseModel, Field


class SearchResult(BaseModel):
    id: str
    label: str
    preview_url: Optional[str] = None
    album_image: Optional[str] = None


class SearchResponse(BaseModel):
    results: list[SearchResult]


class CatalogSearchRequest(BaseModel):
    query: Annotated[str, Field(min_length=1, max_length=200)]
    limit: int = Field(default=20, ge=1, le=50)


class CatalogTrackOut(BaseModel):
    spotify_id: str
    title: str
    artist: str
    album: str
    release_year: Optional[int] = None
    album_image: Optional[str] = None
    preview_url: Optional[str] = None
    duration_ms: Optional[int] = None
    popularity: Optional[int] = None
    external_url: Optional[str] = None


class CatalogSearchResponse(BaseModel):
    results: list[CatalogTrackOut]
