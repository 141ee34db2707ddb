from __future__ import annotations

from typing import Optional


class ChartRadarError(Exception):
    """Base class for errors raised by the chart radar build."""


class SourceConfigError(ChartRadarError):
    """The sources file is missing, unreadable or malformed."""


class FetchError(ChartRadarError):
    """A chart page could not be downloaded."""


class MetadataLookupError(ChartRadarError):
    """The metadata service answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class SnapshotWriteError(ChartRadarError):
    """The output snapshot could not be persisted."""
