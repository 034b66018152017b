"""Tests for the migrate command line."""

import logging
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from gphotos_migrate.common import ConfigLoader, ToolNotFoundError
from gphotos_migrate.media_migrator.cli import (
    APP_NAME,
    EXIT_INTERRUPTED,
    EXIT_OK,
    EXIT_PREFLIGHT,
    apply_overrides,
    build_parser,
    main,
    migrate_command,
    preflight,
)
from gphotos_migrate.media_migrator.config import MediaMigratorConfig

CLI = "gphotos_migrate.media_migrator.cli"


@pytest.fixture
def logger():
    return logging.getLogger("test-preflight")


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """No defaults, system or user config files and no env overrides."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ):
        if key.startswith("GPHOTOS_MIGRATE_"):
            monkeypatch.delenv(key)
    with patch.object(ConfigLoader, "_load_system_config", return_value=None), \
            patch.object(ConfigLoader, "_load_user_config", return_value=None):
        yield


@pytest.fixture
def source(dirs, make_jpeg, write_sidecar):
    google, _, _ = dirs
    make_jpeg(google / "Album" / "IMG_0001.jpg")
    write_sidecar(google / "Album" / "IMG_0001.jpg.json", title="IMG_0001.jpg")
    return google


class TestPreflight:
    """Tests for preflight."""

    def test_all_good(self, logger, dirs, source):
        google, output, errors = dirs
        assert preflight(logger, google, output, errors, force=False) is True

    def test_missing_directory(self, logger, dirs, source, caplog):
        google, output, errors = dirs
        with caplog.at_level(logging.ERROR):
            assert preflight(logger, google, output / "missing", errors, force=False) is False
        assert "output_dir" in caplog.text

    def test_empty_source(self, logger, dirs):
        google, output, errors = dirs
        assert preflight(logger, google, output, errors, force=False) is False

    def test_non_empty_output_needs_force(self, logger, dirs, source):
        google, output, errors = dirs
        (output / "old.jpg").write_bytes(b"x")

        assert preflight(logger, google, output, errors, force=False) is False
        assert preflight(logger, google, output, errors, force=True) is True

    def test_non_empty_error_dir_needs_force(self, logger, dirs, source):
        google, output, errors = dirs
        (errors / ".keep").write_bytes(b"")

        assert preflight(logger, google, output, errors, force=False) is False

    def test_reports_every_missing_directory(self, logger, tmp_path, caplog):
        with caplog.at_level(logging.ERROR):
            ok = preflight(logger, tmp_path / "g", tmp_path / "o", tmp_path / "e", force=False)

        assert ok is False
        assert len(caplog.records) == 3
        for name in ("google_dir", "output_dir", "error_dir"):
            assert name in caplog.text

    def test_reports_every_emptiness_problem(self, logger, dirs, caplog):
        google, output, errors = dirs
        (output / "old.jpg").write_bytes(b"x")
        (errors / "old.jpg").write_bytes(b"x")

        with caplog.at_level(logging.ERROR):
            assert preflight(logger, google, output, errors, force=False) is False

        messages = [record.getMessage() for record in caplog.records]
        assert len(messages) == 3
        assert "Source directory is empty" in messages[0]
        assert "output_dir" in messages[1]
        assert "error_dir" in messages[2]


class TestApplyOverrides:
    """Tests for apply_overrides."""

    def test_no_overrides_returns_same(self):
        config = MediaMigratorConfig()
        args = build_parser().parse_args(["g", "o", "e"])
        assert apply_overrides(config, args) is config

    def test_overrides_applied(self):
        config = MediaMigratorConfig()
        args = build_parser().parse_args(["g", "o", "e", "-t", "5000", "--workers", "4", "--exiftool", "/opt/exiftool"])

        updated = apply_overrides(config, args)

        assert updated.migration.task_timeout_ms == 5000
        assert updated.migration.worker_threads == 4
        assert updated.migration.exiftool_path == "/opt/exiftool"
        assert config.migration.task_timeout_ms == 30000

    def test_invalid_override_rejected(self):
        args = build_parser().parse_args(["g", "o", "e", "--timeout", "0"])
        with pytest.raises(ValidationError):
            apply_overrides(MediaMigratorConfig(), args)


class TestMigrateCommand:
    """Tests for migrate_command."""

    def test_missing_exiftool(self, dirs, source):
        google, output, errors = dirs
        with patch(f"{CLI}.check_exiftool", side_effect=ToolNotFoundError("not available", tool="exiftool")), \
                patch(f"{CLI}.MigrationStream") as stream:
            code = migrate_command(MediaMigratorConfig(), google, output, errors)

        assert code == EXIT_PREFLIGHT
        stream.assert_not_called()
        assert (google / "Album" / "IMG_0001.jpg").exists()

    def test_preflight_failure_touches_nothing(self, dirs, source):
        google, output, errors = dirs
        (output / "old.jpg").write_bytes(b"x")
        with patch(f"{CLI}.check_exiftool") as checker, patch(f"{CLI}.MigrationStream") as stream:
            code = migrate_command(MediaMigratorConfig(), google, output, errors)

        assert code == EXIT_PREFLIGHT
        checker.assert_not_called()
        stream.assert_not_called()

    def test_run_with_failures_exits_zero(self, dirs, source, make_jpeg, fake_exiftool, caplog):
        google, output, errors = dirs
        make_jpeg(google / "orphan.jpg")

        with patch(f"{CLI}.check_exiftool", return_value="/usr/bin/exiftool"), \
                patch("gphotos_migrate.media_migrator.migration_stream.ExifToolProcess", return_value=fake_exiftool):
            with caplog.at_level(logging.INFO):
                code = migrate_command(MediaMigratorConfig(), google, output, errors)

        assert code == EXIT_OK
        assert [p.name for p in output.iterdir()] == ["IMG_0001.jpg"]
        assert [p.name for p in errors.iterdir()] == ["orphan.jpg"]
        assert fake_exiftool.closed is True
        assert "SidecarNotFound" in caplog.text
        assert "Migration summary" in caplog.text

    def test_interrupt(self, dirs, source):
        google, output, errors = dirs
        with patch(f"{CLI}.check_exiftool"), patch(f"{CLI}.MigrationStream") as stream:
            stream.return_value.__enter__.return_value.__iter__.side_effect = KeyboardInterrupt
            code = migrate_command(MediaMigratorConfig(), google, output, errors)

        assert code == EXIT_INTERRUPTED


class TestMain:
    """Tests for the entry point."""

    def test_app_name(self):
        assert APP_NAME == "gphotos-migrate-media-migrator"

    def test_parser_positionals(self):
        args = build_parser().parse_args(["google", "out", "err", "-f"])
        assert str(args.google_dir) == "google"
        assert args.force is True
        assert args.timeout is None

    def test_missing_positional_exits(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["google", "out"])

    def test_invalid_timeout_exits_one(self, isolated_config, dirs, capsys):
        google, output, errors = dirs
        code = main([str(google), str(output), str(errors), "--timeout", "-5"])

        assert code == EXIT_PREFLIGHT
        assert "Invalid configuration" in capsys.readouterr().err

    def test_end_to_end(self, isolated_config, dirs, source, fake_exiftool):
        google, output, errors = dirs
        with patch(f"{CLI}.check_exiftool", return_value="/usr/bin/exiftool"), \
                patch(f"{CLI}.setup_logging") as logging_setup, \
                patch("gphotos_migrate.media_migrator.migration_stream.ExifToolProcess", return_value=fake_exiftool) as factory:
            code = main([str(google), str(output), str(errors), "-t", "1000", "--workers", "2"])

        assert code == EXIT_OK
        logging_setup.assert_called_once()
        factory.assert_called_once_with(executable="exiftool", task_timeout_ms=1000)
        assert [p.name for p in output.iterdir()] == ["IMG_0001.jpg"]
        assert not (google / "Album" / "IMG_0001.jpg").exists()
