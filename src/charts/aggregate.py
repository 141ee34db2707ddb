from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

from models import RawTrackRecord, SourcePosition, UniqueTrack

from .normalize import is_valid_key, track_key

MAX_SCORE_BASE = 200
UNKNOWN_POSITION = 999


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average_position(positions: Iterable[Optional[int]]) -> Optional[int]:
    """Rounded mean of the known positions; 0 and None count as unknown."""
    known = [pos for pos in positions if pos]
    if not known:
        return None
    return round_half_up(sum(known) / len(known))


def position_score(best_pos: Optional[int]) -> int:
    effective = best_pos if best_pos is not None else UNKNOWN_POSITION
    return max(1, MAX_SCORE_BASE - effective)


def aggregate_tracks(records: Iterable[RawTrackRecord]) -> List[UniqueTrack]:
    """Merge per-source rows into unique tracks ranked by best chart position.

    The first row seen for a key provides the display fields; every row,
    including that one, contributes a SourcePosition. Equal scores keep
    first-seen order.
    """
    merged: Dict[str, UniqueTrack] = {}

    for record in records:
        artist = record.artist or ""
        title = record.title or record.track_raw or ""
        key = track_key(artist, title)
        if not is_valid_key(key):
            continue

        entry = merged.get(key)
        if entry is None:
            entry = UniqueTrack.from_record(record)
            merged[key] = entry

        entry.sources_positions.append(
            SourcePosition(
                source_name=record.source_name or "",
                bucket=record.bucket or "",
                region=record.region or "",
                pos=record.pos,
            )
        )

        if record.pos:
            if entry.best_pos is None or record.pos < entry.best_pos:
                entry.best_pos = record.pos

    tracks = list(merged.values())
    for track in tracks:
        track.avg_pos = average_position(sp.pos for sp in track.sources_positions)
        track.score = position_score(track.best_pos)

    tracks.sort(key=lambda t: t.score, reverse=True)
    return tracks
