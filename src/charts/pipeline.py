from __future__ import annotations

import logging
import time
from typing import List, Optional

from itunes_client import ItunesClient
from models import ErrorRecord, OutputSnapshot
from scraper import ChartScraper
from settings import Settings
from storage.cache import MetadataCache
from storage.snapshot_store import write_snapshot
from storage.sources import load_sources

from .aggregate import aggregate_tracks
from .enrichment import MetadataClient, enrich_tracks
from .snapshot import assemble_snapshot

logger = logging.getLogger(__name__)


class ChartPipeline:
    """Scrape, merge, enrich and persist one chart snapshot.

    Source and lookup failures are collected into the snapshot's errors.
    A bad sources file or an unwritable output aborts the run before any
    snapshot is written.
    """

    def __init__(
        self,
        settings: Settings,
        scraper: Optional[ChartScraper] = None,
        client: Optional[MetadataClient] = None,
        cache: Optional[MetadataCache] = None,
    ) -> None:
        self.settings = settings
        self.scraper = scraper or ChartScraper(
            timeout_sec=settings.scrape_timeout_sec,
            max_rows=settings.max_rows,
        )
        self.client = client or ItunesClient(timeout_sec=settings.itunes_timeout_sec)
        self.cache = cache or MetadataCache(settings.itunes_cache_path)

    def run(self) -> OutputSnapshot:
        started_at = time.monotonic()
        sources = load_sources(self.settings.sources_path)
        logger.info("Loaded %s sources from %s", len(sources), self.settings.sources_path)

        errors: List[ErrorRecord] = []
        records = self.scraper.scrape_all(sources, errors)
        logger.info("Scraped %s raw rows (%s source errors).", len(records), len(errors))

        unique = aggregate_tracks(records)
        logger.info("Merged into %s unique tracks.", len(unique))

        entries = self.cache.load()
        try:
            itunes_used = enrich_tracks(
                unique,
                entries,
                self.client,
                errors,
                concurrency=self.settings.concurrency,
            )
        finally:
            self.cache.save(entries)

        snapshot = assemble_snapshot(
            raw_count=len(records),
            items=unique,
            sources_count=len(sources),
            itunes_used=itunes_used,
            errors=errors,
        )
        write_snapshot(snapshot, self.settings.output_path)
        logger.info(
            "Saved %s (raw=%s, count=%s, errors=%s) in %.1fs.",
            self.settings.output_path,
            snapshot.raw_count,
            snapshot.count,
            len(snapshot.errors),
            time.monotonic() - started_at,
        )
        return snapshot
