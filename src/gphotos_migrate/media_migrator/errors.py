"""Error taxonomy for media migration."""

import json
from enum import Enum

from gphotos_migrate.common import GPMigrateError


class FailureKind(str, Enum):
    """Closed set of reasons a media file can end up in the error directory."""

    SIDECAR_NOT_FOUND = "SidecarNotFound"
    SIDECAR_MALFORMED = "SidecarMalformed"
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    TAG_WRITE_FAILED = "TagWriteFailed"
    TIMEOUT = "Timeout"
    FILESYSTEM_ERROR = "FilesystemError"


class WarningKind(str, Enum):
    """Non-fatal problems reported on a successful migration."""

    MTIME_WRITE_FAILED = "MtimeWriteFailed"
    SOURCE_NOT_REMOVED = "SourceNotRemoved"
    SIDECAR_NOT_REMOVED = "SidecarNotRemoved"


class MigrationError(GPMigrateError):
    """Base error for per-file migration; always carries a FailureKind."""

    kind: FailureKind = FailureKind.TAG_WRITE_FAILED


class SidecarNotFoundError(MigrationError):
    """No sidecar naming rule matched the media file."""
    kind = FailureKind.SIDECAR_NOT_FOUND


class SidecarMalformedError(MigrationError):
    """Sidecar JSON is unreadable, lacks a timestamp, or belongs to another file."""
    kind = FailureKind.SIDECAR_MALFORMED


class UnsupportedFormatError(MigrationError):
    """The metadata tool refused to write this container."""
    kind = FailureKind.UNSUPPORTED_FORMAT


class TagWriteFailedError(MigrationError):
    """The metadata tool reported a write error."""
    kind = FailureKind.TAG_WRITE_FAILED


class TaskTimeoutError(MigrationError):
    """The metadata tool did not answer within the per-task deadline."""
    kind = FailureKind.TIMEOUT


class FilesystemError(MigrationError):
    """A copy, rename, unlink or utime call failed."""
    kind = FailureKind.FILESYSTEM_ERROR


class ExifToolCrashedError(TagWriteFailedError):
    """The exiftool process exited while a request was in flight."""
    pass


def classify_error(exception: BaseException) -> FailureKind:
    """
    Classify an exception into a failure kind.

    Args:
        exception: The exception to classify

    Returns:
        The FailureKind reported in the migration result
    """
    if isinstance(exception, MigrationError):
        return exception.kind
    elif isinstance(exception, TimeoutError):
        return FailureKind.TIMEOUT
    elif isinstance(exception, OSError):
        return FailureKind.FILESYSTEM_ERROR
    elif isinstance(exception, (json.JSONDecodeError, ValueError, KeyError, TypeError)):
        return FailureKind.SIDECAR_MALFORMED
    else:
        return FailureKind.TAG_WRITE_FAILED
