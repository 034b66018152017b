"""Parser for Google Takeout JSON sidecar files."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import SidecarMalformedError

logger = logging.getLogger(__name__)

# Formats seen in the "formatted" member of Takeout time objects
_FORMATTED_TIME_FORMATS = [
    "%b %d, %Y, %I:%M:%S %p UTC",  # Jan 1, 2020, 12:00:00 AM UTC
    "%b %d, %Y, %I:%M:%S %p",      # Jan 1, 2020, 12:00:00 AM
    "%Y-%m-%d %H:%M:%S UTC",       # 2020-01-01 00:00:00 UTC
    "%Y-%m-%d %H:%M:%S",           # 2020-01-01 00:00:00
]


@dataclass(frozen=True)
class GeoData:
    """A geoData / geoDataExif object. All-zero means absent."""
    latitude: float
    longitude: float
    altitude: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.latitude == 0.0 and self.longitude == 0.0


@dataclass(frozen=True)
class SidecarDocument:
    """The fields of a Takeout sidecar the migration uses.

    Attributes:
        title: Original file name as Google recorded it
        photo_taken_time: photoTakenTime, UTC epoch seconds
        creation_time: creationTime, UTC epoch seconds (fallback)
        geo_data: geoData, None when absent or all-zero
        geo_data_exif: geoDataExif, None when absent or all-zero
        description: Free-text description, possibly empty
        favorited: Starred in Google Photos
        trashed: Informational only
        archived: Informational only
        people: Names from the people array
    """
    title: str = ""
    photo_taken_time: Optional[int] = None
    creation_time: Optional[int] = None
    geo_data: Optional[GeoData] = None
    geo_data_exif: Optional[GeoData] = None
    description: str = ""
    favorited: bool = False
    trashed: bool = False
    archived: bool = False
    people: List[str] = field(default_factory=list)

    @property
    def taken_timestamp(self) -> int:
        """photoTakenTime, falling back to creationTime."""
        if self.photo_taken_time is not None:
            return self.photo_taken_time
        if self.creation_time is not None:
            return self.creation_time
        raise SidecarMalformedError("Sidecar has neither photoTakenTime nor creationTime")

    @property
    def location(self) -> Optional[GeoData]:
        """geoData wins over geoDataExif whenever it is non-zero."""
        return self.geo_data or self.geo_data_exif


def load_sidecar(json_path: Path) -> SidecarDocument:
    """
    Read and decode a Takeout JSON sidecar.

    Args:
        json_path: Path to JSON sidecar file

    Returns:
        The decoded SidecarDocument

    Raises:
        SidecarMalformedError: If the JSON is invalid, is not an object,
            or carries neither photoTakenTime nor creationTime
        OSError: If the file cannot be read
    """
    with open(json_path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SidecarMalformedError(f"Invalid JSON in sidecar {json_path.name}: {e}", path=str(json_path)) from e

    return parse_sidecar(data, source=json_path.name)


def parse_sidecar(data: Any, source: str = "<sidecar>") -> SidecarDocument:
    """
    Build a SidecarDocument from decoded JSON. Unknown fields are ignored.

    Raises:
        SidecarMalformedError: If the document is unusable
    """
    if not isinstance(data, dict):
        raise SidecarMalformedError(f"Sidecar {source} is not a JSON object")

    try:
        document = SidecarDocument(
            title=_as_str(data.get('title')),
            photo_taken_time=_parse_time(data.get('photoTakenTime')),
            creation_time=_parse_time(data.get('creationTime')),
            geo_data=_parse_geo_data(data.get('geoData')),
            geo_data_exif=_parse_geo_data(data.get('geoDataExif')),
            description=_as_str(data.get('description')),
            favorited=bool(data.get('favorited', False)),
            trashed=bool(data.get('trashed', False)),
            archived=bool(data.get('archived', False)),
            people=_parse_people(data.get('people')),
        )
    except (TypeError, ValueError) as e:
        raise SidecarMalformedError(f"Unreadable field in sidecar {source}: {e}") from e

    if document.photo_taken_time is None and document.creation_time is None:
        raise SidecarMalformedError(f"Sidecar {source} has neither photoTakenTime nor creationTime")

    return document


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _parse_time(time_data: Any) -> Optional[int]:
    """
    Parse a Takeout time object to epoch seconds.

    Takeout stores the timestamp as a decimal string:
    {"timestamp": "1577836800", "formatted": "Jan 1, 2020, 12:00:00 AM UTC"}
    """
    if not isinstance(time_data, dict):
        return None

    if time_data.get('timestamp') not in (None, ""):
        return int(time_data['timestamp'])

    formatted = time_data.get('formatted')
    if isinstance(formatted, str) and formatted:
        return _parse_formatted_timestamp(formatted)

    return None


def _parse_formatted_timestamp(formatted: str) -> Optional[int]:
    """Parse a human-formatted Takeout time (always UTC) to epoch seconds."""
    try:
        dt = datetime.fromisoformat(formatted.replace('Z', '+00:00'))
    except ValueError:
        dt = None

    if dt is None:
        for fmt in _FORMATTED_TIME_FORMATS:
            try:
                dt = datetime.strptime(formatted, fmt)
                break
            except ValueError:
                continue

    if dt is None:
        logger.warning(f"Could not parse timestamp format: {{'formatted': {formatted!r}}}")
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


def _parse_geo_data(geo_data: Any) -> Optional[GeoData]:
    """Parse a geoData object; all-zero coordinates mean absent."""
    if not isinstance(geo_data, dict):
        return None

    geo = GeoData(
        latitude=float(geo_data.get('latitude', 0.0)),
        longitude=float(geo_data.get('longitude', 0.0)),
        altitude=float(geo_data.get('altitude', 0.0)),
    )
    return None if geo.is_zero else geo


def _parse_people(people: Any) -> List[str]:
    if not isinstance(people, list):
        return []
    return [p['name'] for p in people if isinstance(p, dict) and isinstance(p.get('name'), str) and p['name']]


def read_sidecar_title(json_path: Path) -> Optional[str]:
    """The `title` of a sidecar, or None if it cannot be read; nothing else is validated."""
    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    title = data.get('title')
    return title if isinstance(title, str) else None
