from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

import requests
from bs4 import BeautifulSoup
from tqdm import tqdm

from errors import FetchError
from models import ErrorRecord, RawTrackRecord, SourceConfig, SourceType, utc_now_iso

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,es;q=0.8,pt;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# Pages shorter than this are error or consent pages, not charts.
MIN_PAGE_LENGTH = 800

SOURCE_TYPE_PATTERNS = [
    ("kworb.net/youtube/insights/", SourceType.YOUTUBE_INSIGHTS),
    ("kworb.net/spotify/country/", SourceType.SPOTIFY_COUNTRY),
    ("kworb.net/charts/deezer/", SourceType.DEEZER_CHART),
    ("kworb.net/charts/itunes/", SourceType.ITUNES_CHART),
]

ARTIST_TITLE_SEPARATORS = [" - ", " — ", " – ", " : "]

_SPACE_RE = re.compile(r"\s+")
_RANK_PREFIX_RE = re.compile(r"^(#?\s*\d+\s*[.)-]\s*)")
_LOOSE_SPLIT_RE = re.compile(r"^(.+?)\s*[-–—:]\s*(.+)$")
_POSITION_RE = re.compile(r"[0-9]{1,3}")
_DASH_RE = re.compile(r"[-–—:]")
_LETTER_RE = re.compile(r"[A-Za-z\u00c0-\u017f]")


def detect_source_type(url: str) -> SourceType:
    lowered = url.lower()
    for fragment, source_type in SOURCE_TYPE_PATTERNS:
        if fragment in lowered:
            return source_type
    return SourceType.UNKNOWN


def normalize_spaces(text: str) -> str:
    return _SPACE_RE.sub(" ", str(text or "")).strip()


def clean_track_text(text: str) -> str:
    """Collapse whitespace and drop a leading rank prefix such as "12." or "#3 -"."""
    text = normalize_spaces(text)
    return _RANK_PREFIX_RE.sub("", text).strip()


def split_artist_title(track: str) -> Tuple[str, str]:
    track = clean_track_text(track)
    for sep in ARTIST_TITLE_SEPARATORS:
        if sep in track:
            # Only the first two pieces count: "A - Song - Remix" is ("A", "Song").
            artist, title = [part.strip() for part in track.split(sep)[:2]]
            if artist and title:
                return artist, title
    match = _LOOSE_SPLIT_RE.match(track)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return "", track


def _element_text(element) -> str:
    return clean_track_text(element.get_text(" ", strip=True))


def _row_position(row, previous: int) -> int:
    num_cell = row.find("td", class_="num")
    if num_cell is not None:
        text = num_cell.get_text(strip=True)
        if _POSITION_RE.fullmatch(text):
            return int(text)
    for cell in row.find_all("td"):
        text = cell.get_text(strip=True)
        if _POSITION_RE.fullmatch(text):
            return int(text)
    return previous + 1


def _row_track_text(row) -> str:
    for link in row.find_all("a"):
        text = _element_text(link)
        if text and _DASH_RE.search(text) and len(text) >= 6:
            return text

    best = ""
    for cell in row.find_all("td"):
        text = _element_text(cell)
        if len(text) > len(best) and _LETTER_RE.search(text):
            best = text
    return best


def parse_chart_rows(
    page: Optional[str],
    source: SourceConfig,
    source_type: SourceType,
    max_rows: int = 200,
) -> List[RawTrackRecord]:
    """Extract chart rows from a kworb-style HTML table.

    Positions come from the ``num`` cell when present, then from the first
    cell holding only a number, and otherwise continue from the previous row.
    """
    records: List[RawTrackRecord] = []
    if not page or len(page) < MIN_PAGE_LENGTH:
        return records

    soup = BeautifulSoup(page, "html.parser")
    pos = 0
    for row in soup.find_all("tr"):
        if len(records) >= max_rows:
            break
        pos = _row_position(row, pos)

        track = _row_track_text(row)
        if not track:
            continue

        artist, title = split_artist_title(track)
        records.append(
            RawTrackRecord(
                source_type=source_type.value,
                source_name=source.name,
                source_url=source.url,
                region=source.region,
                bucket=source.bucket,
                pos=pos,
                track_raw=track,
                artist=artist,
                title=title,
                published=utc_now_iso(),
            )
        )
    return records


class ChartScraper:
    """Downloads chart pages and turns their tables into raw track records."""

    def __init__(
        self,
        timeout_sec: int = 30,
        max_rows: int = 200,
        session: Optional[requests.Session] = None,
    ):
        self.timeout_sec = timeout_sec
        self.max_rows = max_rows
        self._session = session or requests.Session()
        self._session.headers.update(BROWSER_HEADERS)

    def fetch_text(self, url: str) -> str:
        try:
            resp = self._session.get(url, timeout=self.timeout_sec)
        except requests.RequestException as exc:
            raise FetchError(str(exc)) from exc
        if not resp.ok:
            raise FetchError(f"HTTP {resp.status_code}")
        return resp.text

    def fetch_source_rows(self, source: SourceConfig) -> List[RawTrackRecord]:
        page = self.fetch_text(source.url)
        return parse_chart_rows(page, source, detect_source_type(source.url), self.max_rows)

    def scrape_all(self, sources: Sequence[SourceConfig], errors: List[ErrorRecord]) -> List[RawTrackRecord]:
        """Scrape every source in order; failures are recorded, never raised."""
        records: List[RawTrackRecord] = []
        with tqdm(total=len(sources), desc="Scraping charts") as pbar:
            for source in sources:
                try:
                    rows = self.fetch_source_rows(source)
                except FetchError as e:
                    logger.warning(f"Failed to fetch {source.name}: {e}")
                    errors.append(ErrorRecord(source=source.name, error="fetch_failed", detail=str(e)))
                else:
                    if rows:
                        logger.debug(f"Scraped {len(rows)} rows from {source.name}")
                        records.extend(rows)
                    else:
                        logger.warning(f"No chart rows found in {source.name}")
                        errors.append(ErrorRecord(source=source.name, error="parse_empty"))
                pbar.update(1)
        return records

    def close(self) -> None:
        self._session.close()
