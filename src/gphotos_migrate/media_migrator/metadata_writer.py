"""Writes sidecar metadata into media files through exiftool.

Each media family targets its own tag groups:

- Image: EXIF date and GPS tags plus XMP DateTimeOriginal / Description
- Video and Motion Photo: QuickTime header, track and media dates,
  QuickTime GPSCoordinates and Description
- Raw: XMP only, so the maker-specific EXIF blocks are left untouched

Favorites become XMP Rating=5 and people become XMP PersonInImage for
every family. All timestamps are written as UTC "YYYY:MM:DD HH:MM:SS".
QuickTime stores its dates as UTC, so they are written as-is without
the QuickTimeUTC conversion.
"""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple

from .errors import TagWriteFailedError, UnsupportedFormatError, WarningKind
from .exiftool import ExifToolResponse
from .media_types import MediaFamily
from .models import MigrationWarning
from .sidecar import GeoData, SidecarDocument

logger = logging.getLogger(__name__)

EXIF_TIMESTAMP_FORMAT = "%Y:%m:%d %H:%M:%S"

# exiftool error texts meaning the container cannot be written at all
_UNSUPPORTED_PATTERNS = re.compile(
    r"not yet supported|Unknown file type|can't currently write|Writing of .* is not supported|is not supported",
    re.IGNORECASE,
)

_FILES_UPDATED_RE = re.compile(r"(\d+) image files? updated")
_FILES_UNCHANGED_RE = re.compile(r"(\d+) image files? unchanged")

TagWrite = Tuple[str, str]


def format_exif_timestamp(timestamp: int) -> str:
    """
    Format epoch seconds as an EXIF date in UTC.

    Examples:
        >>> format_exif_timestamp(1577836800)
        '2020:01:01 00:00:00'
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(EXIF_TIMESTAMP_FORMAT)


def _format_number(value: float) -> str:
    # Fixed-point; exiftool does not parse scientific notation in coordinates
    return f"{value:.8f}".rstrip('0').rstrip('.') or "0"


def escape_value(value: str) -> str:
    """Escape a tag value for exiftool's -E (HTML entity) input mode."""
    return value.replace("&", "&amp;").replace("\n", "&#xa;").replace("\r", "&#xd;")


def _image_tags(document: SidecarDocument, taken: str) -> List[TagWrite]:
    tags = [
        ("EXIF:DateTimeOriginal", taken),
        ("EXIF:CreateDate", taken),
        ("EXIF:ModifyDate", taken),
        ("XMP:DateTimeOriginal", taken),
    ]
    location = document.location
    if location is not None:
        tags.extend(_exif_gps_tags(location))
    if document.description:
        tags.append(("EXIF:ImageDescription", document.description))
        tags.append(("XMP:Description", document.description))
    return tags


def _exif_gps_tags(location: GeoData) -> List[TagWrite]:
    return [
        ("EXIF:GPSLatitude", _format_number(abs(location.latitude))),
        ("EXIF:GPSLatitudeRef", "N" if location.latitude >= 0 else "S"),
        ("EXIF:GPSLongitude", _format_number(abs(location.longitude))),
        ("EXIF:GPSLongitudeRef", "E" if location.longitude >= 0 else "W"),
        ("EXIF:GPSAltitude", _format_number(abs(location.altitude))),
        # Numeric value: 0 above sea level, 1 below
        ("EXIF:GPSAltitudeRef#", "1" if location.altitude < 0 else "0"),
    ]


def _quicktime_tags(document: SidecarDocument, taken: str) -> List[TagWrite]:
    tags = [
        (f"QuickTime:{name}", taken)
        for name in (
            "CreateDate",
            "ModifyDate",
            "TrackCreateDate",
            "TrackModifyDate",
            "MediaCreateDate",
            "MediaModifyDate",
        )
    ]
    location = document.location
    if location is not None:
        coordinates = " ".join(
            _format_number(v) for v in (location.latitude, location.longitude, location.altitude)
        )
        tags.append(("QuickTime:GPSCoordinates", coordinates))
    if document.description:
        tags.append(("QuickTime:Description", document.description))
    return tags


def _raw_tags(document: SidecarDocument, taken: str) -> List[TagWrite]:
    tags = [
        ("XMP-exif:DateTimeOriginal", taken),
        ("XMP-xmp:CreateDate", taken),
        ("XMP-xmp:ModifyDate", taken),
    ]
    location = document.location
    if location is not None:
        # Signed decimals; exiftool derives the XMP N/S and E/W letters
        tags.append(("XMP:GPSLatitude", _format_number(location.latitude)))
        tags.append(("XMP:GPSLongitude", _format_number(location.longitude)))
    if document.description:
        tags.append(("XMP:Description", document.description))
    return tags


def build_tag_writes(document: SidecarDocument, family: MediaFamily) -> List[TagWrite]:
    """
    Map a sidecar to the (tag, value) writes for one media family.

    Args:
        document: Parsed sidecar
        family: Media family of the target file

    Returns:
        Ordered list of (tag, value); a tag may repeat for list tags

    Raises:
        SidecarMalformedError: If the sidecar has no usable timestamp
    """
    taken = format_exif_timestamp(document.taken_timestamp)

    dialect = family.tag_dialect
    if dialect == "exif":
        tags = _image_tags(document, taken)
    elif dialect == "quicktime":
        tags = _quicktime_tags(document, taken)
    else:
        tags = _raw_tags(document, taken)

    if document.favorited:
        tags.append(("XMP:Rating", "5"))
    for person in document.people:
        tags.append(("XMP:PersonInImage", person))

    return tags


def apply_file_times(path: Path, timestamp: int) -> None:
    """
    Set atime and mtime of a file to the photo-taken time.

    Raises:
        OSError: If the timestamps cannot be set
    """
    os.utime(path, (timestamp, timestamp))


class MetadataWriter:
    """Applies a sidecar to a media file using a shared exiftool process.

    The exiftool object only needs an ``execute(*args)`` method returning
    an ExifToolResponse; tests pass a fake.
    """

    def __init__(self, exiftool, ignore_minor_errors: bool = True):
        self.exiftool = exiftool
        self.ignore_minor_errors = ignore_minor_errors

    def build_args(self, path: Path, document: SidecarDocument, family: MediaFamily) -> List[str]:
        """Full exiftool argument list for one write, path last."""
        args = ["-overwrite_original", "-E"]
        if self.ignore_minor_errors:
            args.append("-m")
        for tag, value in build_tag_writes(document, family):
            args.append(f"-{tag}={escape_value(value)}")
        args.append(str(path))
        return args

    def write(self, path: Path, document: SidecarDocument, family: MediaFamily) -> List[MigrationWarning]:
        """
        Write the sidecar metadata into a media file, then stamp its mtime.

        Args:
            path: File to modify in place (the temporary copy)
            document: Parsed sidecar
            family: Media family of the file

        Returns:
            Non-fatal warnings; a failed mtime update is reported here

        Raises:
            UnsupportedFormatError: If exiftool cannot write this container
            TagWriteFailedError: If exiftool reported any other write error
            TaskTimeoutError: If exiftool did not answer in time
        """
        if "\n" in str(path) or "\r" in str(path):
            raise UnsupportedFormatError(f"File name contains a line break: {path.name!r}", path=str(path))

        response = self.exiftool.execute(*self.build_args(path, document, family))
        self._check_response(path, response)

        for warning in response.warnings:
            logger.warning(f"exiftool warning: {{'path': {str(path)!r}, 'warning': {warning!r}}}")

        warnings: List[MigrationWarning] = []
        try:
            apply_file_times(path, document.taken_timestamp)
        except OSError as e:
            logger.warning(f"Failed to set file times: {{'path': {str(path)!r}, 'error': {str(e)!r}}}")
            warnings.append(MigrationWarning(kind=WarningKind.MTIME_WRITE_FAILED, detail=f"mtime not set: {e}"))

        return warnings

    @staticmethod
    def _check_response(path: Path, response: ExifToolResponse) -> None:
        errors = response.errors
        if errors:
            detail = "; ".join(errors)
            if any(_UNSUPPORTED_PATTERNS.search(error) for error in errors):
                raise UnsupportedFormatError(detail, path=str(path))
            raise TagWriteFailedError(detail, path=str(path))

        updated = _FILES_UPDATED_RE.search(response.stdout)
        unchanged = _FILES_UNCHANGED_RE.search(response.stdout)
        updated_count = int(updated.group(1)) if updated else 0
        unchanged_count = int(unchanged.group(1)) if unchanged else 0
        if updated_count == 0 and unchanged_count == 0:
            raise TagWriteFailedError(
                f"exiftool did not update the file: {response.stdout.strip() or 'no output'}",
                path=str(path),
            )
