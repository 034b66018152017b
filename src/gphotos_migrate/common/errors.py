"""Base error definitions for gphotos_migrate packages."""

from typing import Any, Dict


class GPMigrateError(Exception):
    """Base exception for all gphotos_migrate errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(GPMigrateError):
    """Configuration is invalid or missing."""
    pass


class ToolNotFoundError(GPMigrateError):
    """Required external tool is not available."""
    pass
