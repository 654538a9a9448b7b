"""
Catalog / enrichment client for the Spotify Web API.

Uses the client-credentials flow (app-level token, cached until shortly
before expiry). All calls are synchronous `httpx` requests.

The preview-URL fallback is best-effort: official previews are often
missing, so the public embed page of each candidate track is scraped for
`p.scdn.co` preview links. Any failure there returns an empty list.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from kdle.core.config import settings
from kdle.core.errors import CatalogError
from kdle.services.game import normalize

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE = "https://api.spotify.com/v1"
EMBED_URL = "https://open.spotify.com/embed/track/{track_id}"

# Refresh the cached token this many seconds before it expires
_TOKEN_SKEW = 60

SEARCH_MARKETS = ("KR", "US", "JP")

NON_OFFICIAL_TERMS = (
    "remix",
    "sped up",
    "speed up",
    "slowed",
    "nightcore",
    "8d",
    "cover",
    "karaoke",
    "reverb",
    "mashup",
    "edit",
    "instrumental",
    "lofi",
)

_PREVIEW_RE = re.compile(r"https://p\.scdn\.co/mp3-preview/[A-Za-z0-9]+(?:\?[A-Za-z0-9=&_\-]+)?")


# ---------------------------------------------------------------------------
# Track record
# ---------------------------------------------------------------------------

@dataclass
class CatalogTrack:
    id: str
    name: str
    artists: list[str] = field(default_factory=list)
    preview_url: Optional[str] = None
    album_name: Optional[str] = None
    album_image: Optional[str] = None
    release_date: Optional[str] = None
    duration_ms: Optional[int] = None
    popularity: Optional[int] = None
    external_url: Optional[str] = None

    @property
    def artist_label(self) -> str:
        return ", ".join(self.artists)

    @property
    def primary_artist(self) -> Optional[str]:
        return self.artists[0] if self.artists else None

    @property
    def release_year(self) -> Optional[int]:
        if not self.release_date or len(self.release_date) < 4:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return f"{self.artist_label} - {self.name}"

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "CatalogTrack":
        album = raw.get("album") or {}
        images = album.get("images") or []
        return cls(
            id=raw.get("id") or "",
            name=raw.get("name") or "",
            artists=[a.get("name", "") for a in raw.get("artists") or [] if a.get("name")],
            preview_url=raw.get("preview_url"),
            album_name=album.get("name"),
            album_image=images[0].get("url") if images else None,
            release_date=album.get("release_date"),
            duration_ms=raw.get("duration_ms"),
            popularity=raw.get("popularity"),
            external_url=(raw.get("external_urls") or {}).get("spotify"),
        )


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def is_official(track: CatalogTrack) -> bool:
    label = normalize(f"{' '.join(track.artists)} {track.name}")
    return not any(term in label for term in NON_OFFICIAL_TERMS)


def filter_official(
    tracks: list[CatalogTrack],
    artist: Optional[str] = None,
    title: Optional[str] = None,
    minimum: int = 3,
) -> list[CatalogTrack]:
    """
    Drop remixes, covers and the like. When both artist and title are
    given, also require both to match. If fewer than `minimum` survive,
    the unfiltered list is returned instead.
    """
    artist_norm = normalize(artist) if artist else None
    title_norm = normalize(title) if title else None

    kept = []
    for t in tracks:
        if not is_official(t):
            continue
        if artist_norm and title_norm:
            an = normalize(" ".join(t.artists))
            tn = normalize(t.name)
            if not (artist_norm in an and (tn == title_norm or title_norm in tn)):
                continue
        kept.append(t)

    if len(kept) < minimum:
        return list(tracks)
    return kept


def split_artist_title(q: str) -> tuple[Optional[str], Optional[str]]:
    """'Artist - Title' → (artist, title); anything else → (None, None)."""
    idx = q.find(" - ")
    if idx <= 0:
        return None, None
    return q[:idx].strip() or None, q[idx + 3:].strip() or None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

def _json(r: httpx.Response) -> dict[str, Any]:
    try:
        data = r.json()
    except ValueError as exc:
        raise CatalogError("Spotify returned a non-JSON body") from exc
    if not isinstance(data, dict):
        raise CatalogError("Spotify returned an unexpected body")
    return data


class SpotifyClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self._http = http or httpx.Client(timeout=timeout)
        self._clock = clock
        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0

    # --- auth ---

    def access_token(self) -> str:
        now = self._clock()
        if self._token and self._token_expires_at - _TOKEN_SKEW > now:
            return self._token
        try:
            r = self._http.post(
                TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
            )
        except httpx.HTTPError as exc:
            raise CatalogError(f"Failed to get Spotify token: {exc}") from exc
        if r.status_code != 200:
            raise CatalogError(
                f"Failed to get Spotify token: {r.status_code}",
                upstream_status=r.status_code,
            )
        data = _json(r)
        try:
            self._token = data["access_token"]
            self._token_expires_at = now + int(data.get("expires_in", 3600))
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogError("Malformed Spotify token response") from exc
        return self._token

    def _api_get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        token = self.access_token()
        try:
            return self._http.get(
                f"{API_BASE}{path}",
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise CatalogError(f"Spotify request failed: {exc}") from exc

    # --- lookups ---

    def get_track_by_id(self, track_id: str) -> Optional[CatalogTrack]:
        r = self._api_get(f"/tracks/{track_id}")
        if r.status_code != 200:
            return None
        return CatalogTrack.from_api(_json(r))

    def search_tracks(
        self,
        query: str,
        limit: int = 5,
        market: Optional[str] = None,
    ) -> list[CatalogTrack]:
        params: dict[str, Any] = {"q": query, "type": "track", "limit": limit}
        if market:
            params["market"] = market
        r = self._api_get("/search", params)
        if r.status_code != 200:
            raise CatalogError(f"Spotify search failed: {r.status_code}", upstream_status=r.status_code)
        items = ((_json(r) or {}).get("tracks") or {}).get("items") or []
        return [CatalogTrack.from_api(it) for it in items if it]

    def search_kpop_tracks(self, query: str, limit: int = 5) -> list[CatalogTrack]:
        return self.search_tracks(f"{query} genre:k-pop", limit=limit)

    def search_for_players(self, q: str, limit: int = 5) -> list[CatalogTrack]:
        """Autocomplete for the guess box: k-pop first, then crafted queries per market."""
        q = q.strip()
        limit = max(1, min(10, limit))
        if not q:
            return []

        artist, title = split_artist_title(q)
        if artist and title:
            queries = [f'track:"{title}" artist:"{artist}"', f"{title} {artist} genre:k-pop"]
        else:
            queries = [f'track:"{q}"', f"{q} genre:k-pop"]

        seen: set[str] = set()
        found: list[CatalogTrack] = []

        def _take(batch: list[CatalogTrack]) -> bool:
            for t in batch:
                if t.id in seen:
                    continue
                seen.add(t.id)
                found.append(t)
                if len(found) >= limit:
                    return True
            return False

        if not _take(self.search_kpop_tracks(q, limit)):
            done = False
            for query in queries:
                for market in SEARCH_MARKETS:
                    if _take(self.search_tracks(query, limit, market)):
                        done = True
                        break
                if done:
                    break

        filtered = filter_official(found, artist=artist, title=title, minimum=min(3, limit))
        return filtered[:limit]

    # --- preview fallback ---

    def find_preview_urls(
        self,
        title: str,
        artist: Optional[str] = None,
        limit: int = 2,
    ) -> list[str]:
        """Zero or more candidate preview URLs for a song. Never raises."""
        query = f"{title} {artist}" if artist else title
        urls: list[str] = []
        try:
            for track in self.search_tracks(query, limit=limit):
                if track.preview_url:
                    candidates = [track.preview_url]
                else:
                    candidates = self._scrape_embed_previews(track.id)
                for url in candidates:
                    if url not in urls:
                        urls.append(url)
                if len(urls) >= limit:
                    break
        except (CatalogError, httpx.HTTPError) as exc:
            logger.warning("Preview lookup failed for %r: %s", query, exc)
            return urls
        return urls[:limit]

    def _scrape_embed_previews(self, track_id: str) -> list[str]:
        if not track_id:
            return []
        r = self._http.get(EMBED_URL.format(track_id=track_id))
        if r.status_code != 200:
            return []
        seen: list[str] = []
        for url in _PREVIEW_RE.findall(r.text):
            if url not in seen:
                seen.append(url)
        return seen

    def close(self) -> None:
        self._http.close()


_client: Optional[SpotifyClient] = None


def get_catalog_client() -> SpotifyClient:
    global _client
    if _client is None:
        _client = SpotifyClient(
            client_id=settings.SPOTIFY_CLIENT_ID,
            client_secret=settings.SPOTIFY_CLIENT_SECRET,
            timeout=settings.SPOTIFY_TIMEOUT,
        )
    return _client
