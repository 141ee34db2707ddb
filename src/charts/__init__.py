"""Chart merge, enrichment and snapshot pipeline."""

from .aggregate import aggregate_tracks
from .enrichment import enrich_tracks
from .normalize import track_key
from .pipeline import ChartPipeline
from .snapshot import assemble_snapshot

__all__ = [
    "ChartPipeline",
    "aggregate_tracks",
    "assemble_snapshot",
    "enrich_tracks",
    "track_key",
]
