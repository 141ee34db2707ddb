from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Protocol, Sequence

from errors import MetadataLookupError
from itunes_client import calc_age_days, release_year_from_date
from models import ErrorRecord, MetadataCacheEntry, UniqueTrack
from storage.cache import cache_key

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 6
LOOKUP_SOURCE = "iTunes"
LOOKUP_FAILED = "itunes_lookup_failed"


class MetadataClient(Protocol):
    def lookup(self, artist: str, title: str) -> Optional[MetadataCacheEntry]:
        ...


class _Cursor:
    """Hands out each index below ``size`` exactly once across threads."""

    def __init__(self, size: int) -> None:
        self._size = size
        self._next = 0
        self._lock = threading.Lock()

    def claim(self) -> Optional[int]:
        with self._lock:
            if self._next >= self._size:
                return None
            idx = self._next
            self._next += 1
            return idx


def apply_metadata(track: UniqueTrack, entry: MetadataCacheEntry) -> None:
    """Fill the track's empty enrichment fields; values already set are kept."""
    track.itunes_genre = track.itunes_genre or entry.itunes_genre or ""
    track.release_date = track.release_date or entry.release_date or ""
    track.itunes_artwork = track.itunes_artwork or entry.artwork or ""
    if not track.release_year and track.release_date:
        track.release_year = release_year_from_date(track.release_date)
    if track.age_days is None:
        track.age_days = calc_age_days(track.release_date)


class EnrichmentRun:
    """State shared by the workers of one enrichment batch."""

    def __init__(
        self,
        tracks: Sequence[UniqueTrack],
        cache: Dict[str, MetadataCacheEntry],
        client: MetadataClient,
        errors: List[ErrorRecord],
    ) -> None:
        self.tracks = tracks
        self.cache = cache
        self.client = client
        self.errors = errors
        self.fresh_lookups = 0
        self._cursor = _Cursor(len(tracks))
        self._lock = threading.Lock()

    def worker(self) -> None:
        while True:
            idx = self._cursor.claim()
            if idx is None:
                return
            self._process(self.tracks[idx])

    def _process(self, track: UniqueTrack) -> None:
        key = cache_key(track.artist, track.title)
        cached = self.cache.get(key)
        if cached is not None:
            apply_metadata(track, cached)
            return

        try:
            found = self.client.lookup(track.artist, track.title)
        except MetadataLookupError as exc:
            logger.warning("iTunes lookup failed for %s - %s: %s", track.artist, track.title, exc)
            with self._lock:
                self.errors.append(
                    ErrorRecord(
                        source=LOOKUP_SOURCE,
                        error=LOOKUP_FAILED,
                        detail=str(exc),
                        track=f"{track.artist} - {track.title}",
                    )
                )
            return

        if found is None:
            self.cache[key] = MetadataCacheEntry()
            return

        self.cache[key] = found
        with self._lock:
            self.fresh_lookups += 1
        apply_metadata(track, found)


def enrich_tracks(
    tracks: Sequence[UniqueTrack],
    cache: Dict[str, MetadataCacheEntry],
    client: MetadataClient,
    errors: List[ErrorRecord],
    concurrency: int = DEFAULT_CONCURRENCY,
) -> int:
    """Enrich unique tracks in place with a fixed pool of lookup workers.

    ``cache`` is consulted and filled in memory; persisting it is the
    caller's job once this returns. Lookup failures are appended to
    ``errors`` and never retried. Returns the number of successful
    lookups against the service.
    """
    run = EnrichmentRun(tracks, cache, client, errors)
    workers = max(1, concurrency)
    logger.info("Enriching %s tracks with %s workers...", len(tracks), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(run.worker) for _ in range(workers)]
        for future in futures:
            future.result()

    logger.info(
        "Enrichment done (%s fresh lookups, %s cached entries).",
        run.fresh_lookups,
        len(cache),
    )
    return run.fresh_lookups
