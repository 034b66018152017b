"""Tests for the migration error taxonomy."""

import json

import pytest

from gphotos_migrate.common import GPMigrateError
from gphotos_migrate.media_migrator.errors import (
    ExifToolCrashedError,
    FailureKind,
    FilesystemError,
    MigrationError,
    SidecarMalformedError,
    SidecarNotFoundError,
    TagWriteFailedError,
    TaskTimeoutError,
    UnsupportedFormatError,
    classify_error,
)


class TestFailureKind:
    """The closed set of failure kinds."""

    def test_values(self):
        assert {kind.value for kind in FailureKind} == {
            "SidecarNotFound",
            "SidecarMalformed",
            "UnsupportedFormat",
            "TagWriteFailed",
            "Timeout",
            "FilesystemError",
        }


class TestMigrationErrors:
    """Each error class carries its kind."""

    @pytest.mark.parametrize("error_class, kind", [
        (SidecarNotFoundError, FailureKind.SIDECAR_NOT_FOUND),
        (SidecarMalformedError, FailureKind.SIDECAR_MALFORMED),
        (UnsupportedFormatError, FailureKind.UNSUPPORTED_FORMAT),
        (TagWriteFailedError, FailureKind.TAG_WRITE_FAILED),
        (TaskTimeoutError, FailureKind.TIMEOUT),
        (FilesystemError, FailureKind.FILESYSTEM_ERROR),
        (ExifToolCrashedError, FailureKind.TAG_WRITE_FAILED),
    ])
    def test_kind(self, error_class, kind):
        error = error_class("detail", path="/x")
        assert isinstance(error, MigrationError)
        assert isinstance(error, GPMigrateError)
        assert error.kind is kind
        assert error.context == {"path": "/x"}


class TestClassifyError:
    """Tests for classify_error function."""

    def test_migration_error_uses_its_kind(self):
        assert classify_error(UnsupportedFormatError("x")) is FailureKind.UNSUPPORTED_FORMAT

    def test_timeout_before_oserror(self):
        # TimeoutError is an OSError subclass
        assert classify_error(TimeoutError()) is FailureKind.TIMEOUT

    def test_oserror(self):
        assert classify_error(PermissionError("denied")) is FailureKind.FILESYSTEM_ERROR
        assert classify_error(FileNotFoundError("gone")) is FailureKind.FILESYSTEM_ERROR

    def test_json_and_value_errors(self):
        assert classify_error(json.JSONDecodeError("bad", "{", 0)) is FailureKind.SIDECAR_MALFORMED
        assert classify_error(ValueError("bad")) is FailureKind.SIDECAR_MALFORMED
        assert classify_error(KeyError("title")) is FailureKind.SIDECAR_MALFORMED

    def test_anything_else(self):
        assert classify_error(RuntimeError("?")) is FailureKind.TAG_WRITE_FAILED
