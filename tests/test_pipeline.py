"""
End-to-end tests for the build pipeline.
Scraping is fed canned rows and lookups go to a fake client, so no network is used.
"""
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from charts.pipeline import ChartPipeline
from conftest import FakeMetadataClient, make_record
from errors import SnapshotWriteError, SourceConfigError
from models import ErrorRecord, MetadataCacheEntry
from settings import Settings
from storage.cache import MetadataCache, cache_key


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    sources_path = tmp_path / "sources.json"
    sources_path.write_text(json.dumps([
        {"url": "https://kworb.net/spotify/country/ar_daily.html", "name": "S1"},
        {"url": "https://kworb.net/spotify/country/mx_daily.html", "name": "S2"},
    ]), encoding="utf-8")
    return Settings(
        sources_path=sources_path,
        output_path=tmp_path / "cache.json",
        itunes_cache_path=tmp_path / "data" / "itunes_cache.json",
    )


@pytest.fixture
def scraper():
    mock_scraper = MagicMock()

    def scrape_all(sources, errors):
        errors.append(ErrorRecord(source="S3", error="fetch_failed", detail="HTTP 500"))
        return [
            make_record("A", "B", pos=3, source="S1"),
            make_record("Broken", "Track", pos=5, source="S1"),
            make_record("a", "b", pos=1, source="S2"),
        ]

    mock_scraper.scrape_all.side_effect = scrape_all
    return mock_scraper


def test_build_writes_merged_enriched_snapshot(settings, scraper, sample_entry):
    client = FakeMetadataClient(results={"A|B": sample_entry}, failures=["Broken|Track"])

    snapshot = ChartPipeline(settings, scraper=scraper, client=client).run()

    assert snapshot.raw_count == 3
    assert snapshot.count == 2
    assert snapshot.sources_count == 2
    assert snapshot.itunes_used == 1
    assert snapshot.yt_used == 0

    payload = json.loads(settings.output_path.read_text(encoding="utf-8"))
    top = payload["items"][0]
    assert (top["artist"], top["best_pos"], top["avg_pos"], top["score"]) == ("A", 1, 2, 199)
    assert len(top["sources_positions"]) == 2
    assert top["itunes_genre"] == "Latin"
    assert payload["items"][1]["artist"] == "Broken"
    assert [e["error"] for e in payload["errors"]] == ["fetch_failed", "itunes_lookup_failed"]


def test_cache_is_saved_even_when_lookups_fail(settings, scraper, sample_entry):
    client = FakeMetadataClient(results={"A|B": sample_entry}, failures=["Broken|Track"])

    ChartPipeline(settings, scraper=scraper, client=client).run()

    entries = MetadataCache(settings.itunes_cache_path).load()
    assert entries[cache_key("A", "B")] == sample_entry
    assert cache_key("Broken", "Track") not in entries


def test_second_run_uses_cache(settings, scraper, sample_entry):
    MetadataCache(settings.itunes_cache_path).save({
        cache_key("A", "B"): sample_entry,
        cache_key("Broken", "Track"): MetadataCacheEntry(),
    })
    client = FakeMetadataClient()

    snapshot = ChartPipeline(settings, scraper=scraper, client=client).run()

    assert client.calls == []
    assert snapshot.itunes_used == 0
    assert snapshot.items[0].release_year == 2023


def test_bad_sources_file_aborts_before_writing(settings, scraper):
    settings.sources_path.write_text("{oops", encoding="utf-8")

    with pytest.raises(SourceConfigError):
        ChartPipeline(settings, scraper=scraper, client=FakeMetadataClient()).run()

    assert not settings.output_path.exists()
    scraper.scrape_all.assert_not_called()


def test_unwritable_output_is_fatal(settings, scraper, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    settings.output_path = blocker / "cache.json"

    with pytest.raises(SnapshotWriteError):
        ChartPipeline(settings, scraper=scraper, client=FakeMetadataClient()).run()


def test_cache_is_saved_when_client_raises_unexpectedly(settings, scraper, sample_entry):
    settings.concurrency = 1

    class CrashingClient:
        def lookup(self, artist, title):
            if artist == "Broken":
                raise RuntimeError("client crashed")
            return sample_entry

    with pytest.raises(RuntimeError, match="client crashed"):
        ChartPipeline(settings, scraper=scraper, client=CrashingClient()).run()

    entries = MetadataCache(settings.itunes_cache_path).load()
    assert entries == {cache_key("A", "B"): sample_entry}
    assert not settings.output_path.exists()
