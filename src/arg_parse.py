import argparse
from typing import Tuple, Any

def setup_parsers() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(description="Chart Radar snapshot builder")
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Build command
    build_parser = subparsers.add_parser('build', help='Scrape the configured charts and write a snapshot')
    build_parser.add_argument('--sources', help='Path to sources.json (default: ./sources.json)', default=None)
    build_parser.add_argument('--output', help='Path of the snapshot to write (default: ./cache.json)', default=None)
    build_parser.add_argument('--cache', help='Path to the iTunes metadata cache', default=None)
    build_parser.add_argument('--concurrency', type=int, default=None,
                              help='Number of parallel iTunes lookups (default: 6)')

    # Show command
    show_parser = subparsers.add_parser('show', help='Show the top tracks of the last snapshot')
    show_parser.add_argument('--output', help='Path of the snapshot to read (default: ./cache.json)', default=None)
    show_parser.add_argument('--limit', type=int, default=20, help='Number of tracks to list (default: 20)')
    show_parser.add_argument('--json', action='store_true', help='Print the snapshot summary as JSON')

    # Cache commands
    cache_stats_parser = subparsers.add_parser('cache-stats', help='Show iTunes metadata cache statistics')
    cache_stats_parser.add_argument('--cache', help='Path to the iTunes metadata cache', default=None)

    cache_clear_parser = subparsers.add_parser('cache-clear', help='Delete the iTunes metadata cache')
    cache_clear_parser.add_argument('--cache', help='Path to the iTunes metadata cache', default=None)

    return parser

def parse_args(argv=None) -> Tuple[str, Any]:
    """Parse command line arguments and return command and args"""
    parser = setup_parsers()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return None, None

    return args.command, args
