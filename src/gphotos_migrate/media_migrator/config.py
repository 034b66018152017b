"""Configuration models for media migration."""

from pydantic import BaseModel, ConfigDict, Field

from gphotos_migrate.common import LoggingConfig, auto_detect_io_workers


class MigrationConfig(BaseModel):
    """Migration pipeline configuration."""

    model_config = ConfigDict(extra='forbid')

    task_timeout_ms: int = Field(
        default=30000,
        ge=1,
        description="Per-file deadline for one exiftool write, in milliseconds"
    )
    worker_threads: int = Field(
        default_factory=auto_detect_io_workers,
        ge=1,
        description="Number of files migrated concurrently (default: CPU cores, at least 2)"
    )
    queue_maxsize: int = Field(
        default=1000,
        ge=1,
        description="Maximum size of the work and results queues"
    )
    exiftool_path: str = Field(
        default="exiftool",
        description="exiftool executable, a command name on PATH or a full path"
    )
    ignore_minor_errors: bool = Field(
        default=True,
        description="Pass -m to exiftool so minor warnings do not abort a write"
    )
    fix_extensions: bool = Field(
        default=True,
        description="Rename images whose extension does not match their content"
    )
    progress_log_interval: int = Field(
        default=100,
        ge=1,
        description="Log progress every N migrated files"
    )


class MediaMigratorConfig(BaseModel):
    """Root configuration for media migration."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
