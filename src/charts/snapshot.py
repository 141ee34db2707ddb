from __future__ import annotations

from typing import List, Optional

from models import ErrorRecord, OutputSnapshot, UniqueTrack, utc_now_iso


def assemble_snapshot(
    raw_count: int,
    items: List[UniqueTrack],
    sources_count: int,
    itunes_used: int,
    errors: List[ErrorRecord],
    generated_at: Optional[str] = None,
) -> OutputSnapshot:
    return OutputSnapshot(
        generated_at=generated_at or utc_now_iso(),
        raw_count=raw_count,
        count=len(items),
        sources_count=sources_count,
        itunes_used=itunes_used,
        errors=list(errors),
        items=list(items),
    )
