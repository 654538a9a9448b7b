"""
Player-facing catalog search (guess autocomplete).

GET /api/search?q=...&limit=5
"""
from fastapi import APIRouter, Depends, Query

from kdle.schemas.catalog import SearchResponse, SearchResult
from kdle.services.catalog import SpotifyClient, get_catalog_client

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchResponse, summary="Search the catalog for a song")
def search(
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=5),
    catalog: SpotifyClient = Depends(get_catalog_client),
):
    """
    Accepts free text or `Artist - Title`. Remixes, covers and similar
    variants are filtered out unless that leaves too few results.
    """
    if not q.strip():
        return SearchResponse(results=[])
    tracks = catalog.search_for_players(q, limit)
    return SearchResponse(results=[
        SearchResult(
            id=t.id,
            label=t.label,
            preview_url=t.preview_url,
            album_image=t.album_image,
        )
        for t in tracks
    ])
