from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from errors import SnapshotWriteError
from models import OutputSnapshot


def write_snapshot(snapshot: OutputSnapshot, path: Path) -> None:
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as exc:
        raise SnapshotWriteError(f"Could not write snapshot to {path}: {exc}") from exc


def read_snapshot(path: Path) -> Optional[Dict[str, Any]]:
    """Return the last written snapshot document, or None if there is none."""
    path = Path(path)
    if not path.exists():
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
