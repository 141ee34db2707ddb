from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from errors import MetadataLookupError
from models import MetadataCacheEntry

logger = logging.getLogger(__name__)

ITUNES_SEARCH_URL = "https://itunes.apple.com/search"
USER_AGENT = "MB-RadarCache/1.0"


def upgrade_artwork(url: str) -> str:
    return (url or "").replace("100x100", "300x300")


def _parse_release_date(value: str) -> Optional[datetime]:
    text = str(value or "").strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def calc_age_days(release_date: str, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days since release, never negative; None if the date is missing or bad."""
    released = _parse_release_date(release_date)
    if released is None:
        return None
    now = now or datetime.now(timezone.utc)
    days = (now - released).total_seconds() // 86400
    return max(0, int(days))


def release_year_from_date(release_date: str) -> Optional[int]:
    prefix = str(release_date or "")[:4]
    if len(prefix) == 4 and prefix.isdigit():
        return int(prefix)
    return None


class ItunesClient:
    """Looks up one track's genre, release date and artwork on the iTunes Search API."""

    def __init__(self, timeout_sec: int = 20, session: Optional[requests.Session] = None):
        self.timeout_sec = timeout_sec
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def lookup(self, artist: str, title: str) -> Optional[MetadataCacheEntry]:
        """Return the best match for artist + title, or None when nothing matches.

        Raises MetadataLookupError on a non-2xx answer or a transport failure.
        """
        term = f"{artist} {title}".strip()
        try:
            resp = self._session.get(
                ITUNES_SEARCH_URL,
                params={"term": term, "entity": "song", "limit": 1},
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise MetadataLookupError(str(exc)) from exc

        if not resp.ok:
            raise MetadataLookupError(f"itunes_http_{resp.status_code}", status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise MetadataLookupError(f"itunes_bad_json: {exc}", status=resp.status_code) from exc

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            logger.debug("No iTunes match for %s", term)
            return None

        item = results[0]
        release_date = item.get("releaseDate")
        artwork = item.get("artworkUrl100") or item.get("artworkUrl60") or item.get("artworkUrl30") or ""
        return MetadataCacheEntry(
            itunes_genre=item.get("primaryGenreName") or "",
            release_date=str(release_date)[:10] if release_date else "",
            track_view_url=item.get("trackViewUrl") or "",
            artwork=upgrade_artwork(artwork),
        )

    def close(self) -> None:
        self._session.close()
