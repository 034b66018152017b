"""Tests for the run summary."""

import logging
from pathlib import Path

from gphotos_migrate.media_migrator.errors import FailureKind, WarningKind
from gphotos_migrate.media_migrator.models import Failure, MigrationWarning, Success
from gphotos_migrate.media_migrator.summary import MigrationSummary


def _success(*warnings: MigrationWarning) -> Success:
    return Success(output_path=Path("/out/a.jpg"), source_path=Path("/src/a.jpg"), warnings=list(warnings))


def _failure(kind: FailureKind) -> Failure:
    return Failure(source_path=Path("/src/b.jpg"), sidecar_path=None, kind=kind, detail="boom")


class TestMigrationSummary:
    """Tests for MigrationSummary."""

    def test_counts(self):
        summary = MigrationSummary()
        summary.add(_success())
        summary.add(_success(MigrationWarning(WarningKind.MTIME_WRITE_FAILED, "mtime not set")))
        summary.add(_failure(FailureKind.TIMEOUT))
        summary.add(_failure(FailureKind.TIMEOUT))
        summary.add(_failure(FailureKind.SIDECAR_NOT_FOUND))

        data = summary.to_dict()

        assert data["processed"] == 5
        assert data["migrated"] == 2
        assert data["failed"] == 3
        assert data["warnings"] == 1
        assert data["failures_by_kind"]["Timeout"] == 2
        assert data["failures_by_kind"]["SidecarNotFound"] == 1
        assert data["warnings_by_kind"] == {"MtimeWriteFailed": 1}

    def test_every_kind_listed(self):
        data = MigrationSummary().to_dict()
        assert set(data["failures_by_kind"]) == {kind.value for kind in FailureKind}
        assert all(count == 0 for count in data["failures_by_kind"].values())

    def test_log_summary(self, caplog):
        summary = MigrationSummary()
        summary.add(_failure(FailureKind.UNSUPPORTED_FORMAT))
        with caplog.at_level(logging.INFO):
            summary.log_summary()
        assert "'failed': 1" in caplog.text
        assert "UnsupportedFormat" in caplog.text
