from __future__ import annotations

import json
from pathlib import Path
from typing import List

from errors import SourceConfigError
from models import SourceConfig


def load_sources(path: Path) -> List[SourceConfig]:
    """Read the list of chart pages to scrape.

    The file must hold a JSON array of objects, each with at least a ``url``.
    Anything else is a configuration error and aborts the build.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise SourceConfigError(f"Sources file not found: {path}") from exc
    except (OSError, ValueError) as exc:
        raise SourceConfigError(f"Could not read sources file {path}: {exc}") from exc

    if not isinstance(data, list):
        raise SourceConfigError(f"Sources file {path} must contain a JSON array.")

    sources: List[SourceConfig] = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("url"):
            raise SourceConfigError(f"Source #{idx + 1} in {path} has no url.")
        sources.append(
            SourceConfig(
                url=str(item["url"]),
                name=str(item.get("name") or ""),
                region=str(item.get("region") or ""),
                bucket=str(item.get("bucket") or ""),
            )
        )
    return sources
