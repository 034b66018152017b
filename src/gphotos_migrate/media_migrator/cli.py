"""CLI command for media migration."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from gphotos_migrate.common import (
    ConfigLoader,
    ConfigurationError,
    LogContext,
    ToolNotFoundError,
    is_empty_dir,
    setup_logging,
)
from .config import MediaMigratorConfig, MigrationConfig
from .migration_stream import MigrationStream
from .models import Failure
from .progress import ProgressTracker
from .summary import MigrationSummary
from .tool_checker import check_exiftool

# Application name derived from package name
_package = __package__ or "gphotos_migrate.media_migrator"
APP_NAME = _package.replace('_', '-').replace('.', '-')

EXIT_OK = 0
EXIT_PREFLIGHT = 1
EXIT_INTERRUPTED = 130


def preflight(
    logger: logging.Logger,
    google_dir: Path,
    output_dir: Path,
    error_dir: Path,
    force: bool,
) -> bool:
    """Check the three directories before any file is touched.

    Problems are reported in two groups: missing directories first, then
    the emptiness checks. Every problem in a group is logged at ERROR.

    Returns:
        True if migration may start
    """
    missing = [
        f"Directory does not exist: {{'{name}': {str(path)!r}}}"
        for name, path in (("google_dir", google_dir), ("output_dir", output_dir), ("error_dir", error_dir))
        if not path.is_dir()
    ]
    if missing:
        for problem in missing:
            logger.error(problem)
        return False

    problems = []
    if is_empty_dir(google_dir):
        problems.append(f"Source directory is empty: {{'google_dir': {str(google_dir)!r}}}")
    if not force:
        for name, path in (("output_dir", output_dir), ("error_dir", error_dir)):
            if not is_empty_dir(path):
                problems.append(f"Directory is not empty, use --force to proceed: {{'{name}': {str(path)!r}}}")

    for problem in problems:
        logger.error(problem)
    return not problems


def migrate_command(
    config: MediaMigratorConfig,
    google_dir: Path,
    output_dir: Path,
    error_dir: Path,
    force: bool = False,
) -> int:
    """Migrate a Takeout tree into output_dir and error_dir.

    Args:
        config: Configuration object with command-line overrides applied
        google_dir: Source Takeout tree
        output_dir: Flat output directory
        error_dir: Flat error directory

    Returns:
        Exit code (0 even if some files failed; 1 on pre-flight errors)
    """
    logger_name = __package__ or __name__
    logger = logging.getLogger(logger_name)
    settings = config.migration

    logger.info(
        f"Configuration: {{'google_dir': {str(google_dir)!r}, 'output_dir': {str(output_dir)!r}, "
        f"'error_dir': {str(error_dir)!r}, 'force': {force}, 'worker_threads': {settings.worker_threads}, "
        f"'task_timeout_ms': {settings.task_timeout_ms}, 'exiftool': {settings.exiftool_path!r}}}"
    )

    try:
        if not preflight(logger, google_dir, output_dir, error_dir, force):
            return EXIT_PREFLIGHT
        check_exiftool(settings.exiftool_path)
    except ToolNotFoundError as e:
        logger.error(e.message)
        return EXIT_PREFLIGHT
    except OSError as e:
        logger.error(f"Pre-flight check failed: {{'error': {str(e)!r}}}")
        return EXIT_PREFLIGHT

    summary = MigrationSummary()
    progress = ProgressTracker(log_interval=settings.progress_log_interval)

    with LogContext(
        logger,
        google_dir=str(google_dir),
        output_dir=str(output_dir),
        error_dir=str(error_dir),
    ):
        try:
            with MigrationStream(google_dir, output_dir, error_dir, config=settings) as stream:
                for result in stream:
                    summary.add(result)
                    progress.increment()
                    if isinstance(result, Failure):
                        logger.error(
                            f"Migration failed: {{'kind': {result.kind.value!r}, "
                            f"'source': {str(result.source_path)!r}, 'detail': {result.detail!r}}}"
                        )
        except KeyboardInterrupt:
            logger.warning("Interrupted: unprocessed files remain in the source directory")
            progress.log_final_summary()
            summary.log_summary()
            return EXIT_INTERRUPTED

        progress.log_final_summary()
        summary.log_summary()

    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gphotos-migrate",
        description="Write Google Takeout sidecar metadata into media files and flatten them into one directory"
    )
    parser.add_argument("google_dir", type=Path, help="Google Takeout directory to migrate")
    parser.add_argument("output_dir", type=Path, help="Directory that receives migrated media files")
    parser.add_argument("error_dir", type=Path, help="Directory that receives failed media files and their sidecars")
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Proceed even if output_dir or error_dir is not empty"
    )
    parser.add_argument(
        "-t", "--timeout",
        type=int,
        required=False,
        help="Per-file exiftool timeout in milliseconds (overrides config, default: 30000)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        required=False,
        help="Number of files migrated concurrently (overrides config)"
    )
    parser.add_argument(
        "--exiftool",
        required=False,
        help="exiftool executable (overrides config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    return parser


def apply_overrides(config: MediaMigratorConfig, args: argparse.Namespace) -> MediaMigratorConfig:
    """Return a copy of config with command-line values applied and validated."""
    overrides = {}
    if args.timeout is not None:
        overrides['task_timeout_ms'] = args.timeout
    if args.workers is not None:
        overrides['worker_threads'] = args.workers
    if args.exiftool is not None:
        overrides['exiftool_path'] = args.exiftool
    if not overrides:
        return config

    migration = MigrationConfig.model_validate({**config.migration.model_dump(), **overrides})
    return config.model_copy(update={'migration': migration})


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for migrate command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    loader = ConfigLoader(
        app_name=APP_NAME,
        config_class=MediaMigratorConfig
    )

    try:
        config = apply_overrides(loader.load(defaults_path=args.config), args)
    except (ConfigurationError, ValidationError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_PREFLIGHT

    setup_logging(
        level=config.logging.level,
        format=config.logging.format,
        log_file=config.logging.file_path,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    return migrate_command(
        config=config,
        google_dir=args.google_dir,
        output_dir=args.output_dir,
        error_dir=args.error_dir,
        force=args.force,
    )


if __name__ == "__main__":
    sys.exit(main())
