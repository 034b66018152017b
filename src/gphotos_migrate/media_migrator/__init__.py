"""Media migration: Takeout sidecars into embedded metadata, flat layout."""

from .config import MediaMigratorConfig, MigrationConfig
from .errors import FailureKind, MigrationError, WarningKind, classify_error
from .migration_stream import MigrationStream, migrate_google_dir
from .models import Failure, MediaCandidate, MigrationResult, Success

__version__ = "0.1.0"

__all__ = [
    'MigrationStream',
    'migrate_google_dir',
    'MediaMigratorConfig',
    'MigrationConfig',
    'FailureKind',
    'WarningKind',
    'MigrationError',
    'classify_error',
    'MediaCandidate',
    'MigrationResult',
    'Success',
    'Failure',
]
