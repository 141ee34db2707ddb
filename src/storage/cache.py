from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict

from models import MetadataCacheEntry

logger = logging.getLogger(__name__)


def fold_text(text: str) -> str:
    return " ".join(str(text or "").strip().lower().split())


def cache_key(artist: str, title: str) -> str:
    return f"{fold_text(artist)} — {fold_text(title)}"


class MetadataCache:
    """JSON file mapping folded "artist — title" keys to lookup results.

    The file is read once before an enrichment batch and written once after
    it. Writes go through a temporary file so an interrupted save never
    truncates the previous cache.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> Dict[str, MetadataCacheEntry]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable metadata cache %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring metadata cache %s: expected a JSON object.", self.path)
            return {}

        entries: Dict[str, MetadataCacheEntry] = {}
        for key, value in data.items():
            if isinstance(value, dict):
                entries[str(key)] = MetadataCacheEntry.from_dict(value)
        logger.debug("Loaded %s metadata cache entries from %s", len(entries), self.path)
        return entries

    def save(self, entries: Dict[str, MetadataCacheEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: entry.to_dict() for key, entry in entries.items()}
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)
        logger.debug("Saved %s metadata cache entries to %s", len(payload), self.path)

    def clear(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True
