"""JSON file storage for the chart radar build."""

from .cache import MetadataCache, cache_key
from .snapshot_store import read_snapshot, write_snapshot
from .sources import load_sources

__all__ = [
    "MetadataCache",
    "cache_key",
    "load_sources",
    "read_snapshot",
    "write_snapshot",
]
