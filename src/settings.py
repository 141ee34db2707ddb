from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 6
DEFAULT_ITUNES_TIMEOUT_SEC = 20
DEFAULT_SCRAPE_TIMEOUT_SEC = 30
DEFAULT_MAX_ROWS = 200


def _parse_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%s; using %s.", name, raw, default)
        return default


def _env_path(name: str, default: Path) -> Path:
    env_path = os.getenv(name)
    if env_path:
        return Path(env_path).expanduser()
    return default


@dataclass
class Settings:
    sources_path: Path
    output_path: Path
    itunes_cache_path: Path
    concurrency: int = DEFAULT_CONCURRENCY
    itunes_timeout_sec: int = DEFAULT_ITUNES_TIMEOUT_SEC
    scrape_timeout_sec: int = DEFAULT_SCRAPE_TIMEOUT_SEC
    max_rows: int = DEFAULT_MAX_ROWS


def load_settings(
    sources: Optional[str] = None,
    output: Optional[str] = None,
    cache: Optional[str] = None,
    concurrency: Optional[int] = None,
    env_file: Optional[Path] = None,
) -> Settings:
    """Build settings from ./config/.env, the environment and explicit overrides.

    Explicit arguments (usually CLI flags) win over environment variables,
    which win over the defaults.
    """
    cwd = Path.cwd()
    load_dotenv(env_file or cwd / "config" / ".env")

    settings = Settings(
        sources_path=_env_path("CHART_RADAR_SOURCES", cwd / "sources.json"),
        output_path=_env_path("CHART_RADAR_OUTPUT", cwd / "cache.json"),
        itunes_cache_path=_env_path(
            "CHART_RADAR_ITUNES_CACHE", cwd / "data" / "itunes_cache.json"
        ),
        concurrency=_parse_env_int("ITUNES_CONCURRENCY", DEFAULT_CONCURRENCY),
        itunes_timeout_sec=_parse_env_int("ITUNES_TIMEOUT_SEC", DEFAULT_ITUNES_TIMEOUT_SEC),
        scrape_timeout_sec=_parse_env_int("SCRAPE_TIMEOUT_SEC", DEFAULT_SCRAPE_TIMEOUT_SEC),
        max_rows=_parse_env_int("SCRAPE_MAX_ROWS", DEFAULT_MAX_ROWS),
    )

    if sources:
        settings.sources_path = Path(sources).expanduser()
    if output:
        settings.output_path = Path(output).expanduser()
    if cache:
        settings.itunes_cache_path = Path(cache).expanduser()
    if concurrency is not None:
        settings.concurrency = concurrency

    if settings.concurrency < 1:
        logger.warning("Concurrency must be at least 1; using 1.")
        settings.concurrency = 1
    return settings
