from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utc_now_iso() -> str:
    """ISO-8601 timestamp in UTC with millisecond precision and a Z suffix"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class SourceType(str, Enum):
    """Kind of chart page a source URL points at"""
    YOUTUBE_INSIGHTS = "youtube_insights"
    SPOTIFY_COUNTRY = "spotify_country"
    DEEZER_CHART = "deezer_chart"
    ITUNES_CHART = "itunes_chart"
    UNKNOWN = "unknown"


@dataclass
class SourceConfig:
    """One configured chart page"""
    url: str
    name: str = ""
    region: str = ""
    bucket: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = self.url


@dataclass
class RawTrackRecord:
    """One chart row scraped from one source"""
    source_type: str = SourceType.UNKNOWN.value
    source_name: str = ""
    source_url: str = ""
    region: str = ""
    bucket: str = ""
    pos: Optional[int] = None
    track_raw: str = ""
    artist: str = ""
    title: str = ""
    streams: Optional[int] = None
    delta: Optional[int] = None
    itunes_genre: str = ""
    genre_label: str = ""
    release_date: str = ""
    release_year: Optional[int] = None
    age_days: Optional[int] = None
    freshness_code: str = "unknown"
    freshness_label: str = ""
    youtube_video_id: str = ""
    youtube_url: str = ""
    cover_url: str = ""
    itunes_artwork: str = ""
    published: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(RawTrackRecord)}


@dataclass
class SourcePosition:
    """Where a unique track was seen: one entry per contributing row"""
    source_name: str
    bucket: str
    region: str
    pos: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_name": self.source_name,
            "bucket": self.bucket,
            "region": self.region,
            "pos": self.pos,
        }


@dataclass
class UniqueTrack(RawTrackRecord):
    """A de-duplicated chart entry aggregated from one or more source rows"""
    sources_positions: List[SourcePosition] = field(default_factory=list)
    best_pos: Optional[int] = None
    avg_pos: Optional[int] = None
    score: int = 0

    @classmethod
    def from_record(cls, record: RawTrackRecord) -> "UniqueTrack":
        seed = {f.name: getattr(record, f.name) for f in fields(RawTrackRecord)}
        return cls(**seed)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["sources_positions"] = [sp.to_dict() for sp in self.sources_positions]
        payload["best_pos"] = self.best_pos
        payload["avg_pos"] = self.avg_pos
        payload["score"] = self.score
        return payload


@dataclass
class MetadataCacheEntry:
    """Lookup result persisted in the metadata cache; all-empty marks a known miss"""
    itunes_genre: str = ""
    release_date: str = ""
    track_view_url: str = ""
    artwork: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.itunes_genre or self.release_date or self.track_view_url or self.artwork)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetadataCacheEntry":
        return cls(
            itunes_genre=str(data.get("itunes_genre") or ""),
            release_date=str(data.get("release_date") or ""),
            track_view_url=str(data.get("track_view_url") or ""),
            artwork=str(data.get("artwork") or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "itunes_genre": self.itunes_genre,
            "release_date": self.release_date,
            "track_view_url": self.track_view_url,
            "artwork": self.artwork,
        }


@dataclass
class ErrorRecord:
    """A non-fatal failure collected during a build"""
    source: str
    error: str
    detail: Optional[str] = None
    track: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        payload = {"source": self.source, "error": self.error}
        if self.detail is not None:
            payload["detail"] = self.detail
        if self.track is not None:
            payload["track"] = self.track
        return payload


@dataclass
class OutputSnapshot:
    """The document written at the end of a build"""
    generated_at: str
    raw_count: int
    count: int
    sources_count: int
    itunes_used: int
    errors: List[ErrorRecord]
    items: List[UniqueTrack]
    ok: bool = True
    yt_used: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "generated_at": self.generated_at,
            "raw_count": self.raw_count,
            "count": self.count,
            "sources_count": self.sources_count,
            "itunes_used": self.itunes_used,
            "yt_used": self.yt_used,
            "errors": [err.to_dict() for err in self.errors],
            "items": [item.to_dict() for item in self.items],
        }
