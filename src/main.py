import logging
from typing import Optional

from tabulate import tabulate

import ui
from arg_parse import parse_args
from charts import ChartPipeline
from models import OutputSnapshot
from settings import load_settings
from storage import MetadataCache, read_snapshot

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

class RadarCLI:
    def build(self, sources: Optional[str] = None, output: Optional[str] = None,
              cache: Optional[str] = None, concurrency: Optional[int] = None) -> OutputSnapshot:
        """Scrape every configured chart, merge, enrich and write the snapshot.

        Source and lookup failures end up in the snapshot's error list. A bad
        sources file or an unwritable output raises and nothing is written.
        """
        settings = load_settings(sources=sources, output=output, cache=cache, concurrency=concurrency)
        logger.info(f"Building snapshot from {settings.sources_path}...")

        snapshot = ChartPipeline(settings).run()
        self._show_build_summary(snapshot)
        return snapshot

    def _show_build_summary(self, snapshot: OutputSnapshot):
        """Render counts and the collected errors of a finished build"""
        ui.section("Snapshot built", snapshot.generated_at)
        ui.key_value_table([
            ["Sources", snapshot.sources_count],
            ["Raw rows", snapshot.raw_count],
            ["Unique tracks", snapshot.count],
            ["iTunes lookups", snapshot.itunes_used],
            ["Errors", len(snapshot.errors)],
        ])
        if snapshot.errors:
            ui.warning(f"{len(snapshot.errors)} non-fatal errors:")
            ui.table(
                ["Source", "Error", "Detail", "Track"],
                [[e.source, e.error, e.detail or "", e.track or ""] for e in snapshot.errors],
            )

    def show(self, output: Optional[str] = None, limit: int = 20, as_json: bool = False) -> bool:
        """Print the top tracks of the last written snapshot"""
        settings = load_settings(output=output)
        payload = read_snapshot(settings.output_path)
        if payload is None:
            logger.error(f"No snapshot found at {settings.output_path}. Run 'build' first.")
            return False

        items = payload.get("items") or []
        if as_json:
            summary = {key: value for key, value in payload.items() if key != "items"}
            summary["items"] = items[:limit]
            ui.json_output(summary)
            return True

        logger.info(f"\n=== Snapshot {payload.get('generated_at', '')} ===")
        table_data = []
        for i, item in enumerate(items[:limit], 1):
            table_data.append([
                i,
                item.get("artist", ""),
                item.get("title", ""),
                item.get("best_pos") or "-",
                item.get("avg_pos") or "-",
                len(item.get("sources_positions") or []),
                item.get("score", 0),
                item.get("itunes_genre") or "",
                item.get("release_date") or "",
            ])

        print(tabulate(table_data,
                       headers=["#", "Artist", "Title", "Best", "Avg", "Sources", "Score", "Genre", "Released"],
                       tablefmt="grid"))
        print(f"\nTotal tracks: {payload.get('count', len(items))}")
        return True

    def cache_stats(self, cache: Optional[str] = None):
        """Show how many lookups the metadata cache holds and how many were misses"""
        settings = load_settings(cache=cache)
        entries = MetadataCache(settings.itunes_cache_path).load()
        misses = sum(1 for entry in entries.values() if entry.is_empty)

        ui.section("iTunes metadata cache", str(settings.itunes_cache_path))
        ui.key_value_table([
            ["Entries", len(entries)],
            ["Matches", len(entries) - misses],
            ["Known misses", misses],
        ])

    def cache_clear(self, cache: Optional[str] = None):
        settings = load_settings(cache=cache)
        if MetadataCache(settings.itunes_cache_path).clear():
            ui.info(f"Deleted {settings.itunes_cache_path}")
        else:
            ui.warning(f"No cache at {settings.itunes_cache_path}")

def main(argv=None):
    command, args = parse_args(argv)

    if not command:
        return 1

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    cli = RadarCLI()
    try:
        if command == 'build':
            cli.build(args.sources, args.output, args.cache, args.concurrency)
        elif command == 'show':
            if not cli.show(args.output, args.limit, args.json):
                return 1
        elif command == 'cache-stats':
            cli.cache_stats(args.cache)
        elif command == 'cache-clear':
            cli.cache_clear(args.cache)
    except Exception as e:
        logger.error(f"Command failed: {str(e)}")
        logger.debug("Full error:", exc_info=True)
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
