"""Common utilities for gphotos_migrate packages."""

from .config import ConfigLoader
from .config_utils import auto_detect_io_workers, get_cpu_count
from .logging import setup_logging, LogContext
from .logging_config import LoggingConfig
from .errors import GPMigrateError, ConfigurationError, ToolNotFoundError
from .path_utils import normalize_name, normalize_path, should_scan_file, is_empty_dir

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'LogContext',
    'GPMigrateError',
    'ConfigurationError',
    'ToolNotFoundError',
    'auto_detect_io_workers',
    'get_cpu_count',
    'normalize_name',
    'normalize_path',
    'should_scan_file',
    'is_empty_dir',
]
