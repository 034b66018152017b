"""Logging section of the configuration file."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


class LoggingConfig(BaseModel):
    """Logging configuration shared by every command."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="json",
        description="Console formatter; the log file is always JSON"
    )
    file: str | None = Field(
        default=None,
        description="Optional rotating log file"
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        description="Rotate the log file after this many megabytes"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of rotated log files to keep"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept `info`, `Info` and `INFO` alike."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('format', mode='before')
    @classmethod
    def normalize_format(cls, v: str) -> str:
        """Accept `JSON`, `Json` and `json` alike."""
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def file_path(self) -> Optional[Path]:
        """The log file as a Path, or None when file logging is off."""
        return Path(self.file).expanduser() if self.file else None
