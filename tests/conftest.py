"""
Shared pytest fixtures for all tests.
Provides sample chart rows and a fake metadata client so tests never touch the network.
"""
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from errors import MetadataLookupError  # noqa: E402
from models import MetadataCacheEntry, RawTrackRecord  # noqa: E402


# =============================================================================
# Sample Data Fixtures
# =============================================================================

def make_record(artist: str, title: str, pos: Optional[int] = 1, source: str = "S1", **extra) -> RawTrackRecord:
    """Build a RawTrackRecord with sensible defaults for tests"""
    fields = {
        "source_type": "spotify_country",
        "source_name": source,
        "source_url": f"https://kworb.net/spotify/country/{source.lower()}.html",
        "region": "AR",
        "bucket": "daily",
        "pos": pos,
        "track_raw": f"{artist} - {title}",
        "artist": artist,
        "title": title,
        "published": "2026-01-01T00:00:00.000Z",
    }
    fields.update(extra)
    return RawTrackRecord(**fields)


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def sample_records() -> List[RawTrackRecord]:
    """Rows from two charts with one track present on both"""
    return [
        make_record("Bad Bunny", "MONACO", pos=3, source="Spotify AR"),
        make_record("Karol G", "Si Antes Te Hubiera Conocido", pos=5, source="Spotify AR"),
        make_record("bad bunny", "monaco ", pos=1, source="Spotify MX"),
        make_record("Peso Pluma", "LA DURANGO", pos=None, source="Spotify MX"),
    ]


# =============================================================================
# Fake Metadata Client
# =============================================================================

class FakeMetadataClient:
    """Thread-safe stand-in for ItunesClient.

    ``results`` maps "artist|title" to an entry (or None for no match);
    ``failures`` lists "artist|title" keys that raise MetadataLookupError.
    """

    def __init__(self, results: Optional[Dict[str, Optional[MetadataCacheEntry]]] = None,
                 failures: Optional[List[str]] = None):
        self.results = results or {}
        self.failures = set(failures or [])
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def lookup(self, artist: str, title: str) -> Optional[MetadataCacheEntry]:
        key = f"{artist}|{title}"
        with self._lock:
            self.calls.append(key)
        if key in self.failures:
            raise MetadataLookupError("itunes_http_503", status=503)
        return self.results.get(key)


@pytest.fixture
def fake_client_factory():
    return FakeMetadataClient


@pytest.fixture
def sample_entry() -> MetadataCacheEntry:
    return MetadataCacheEntry(
        itunes_genre="Latin",
        release_date="2023-10-13",
        track_view_url="https://music.apple.com/us/album/monaco/1",
        artwork="https://is1-ssl.mzstatic.com/image/thumb/300x300bb.jpg",
    )
