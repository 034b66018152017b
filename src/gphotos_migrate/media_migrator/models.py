"""Records passed between the walker, the migrator and the caller."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .errors import FailureKind, WarningKind
from .media_types import MediaFamily


@dataclass(frozen=True)
class MediaCandidate:
    """A media file found by the walker.

    Attributes:
        path: Absolute path of the media file in the source tree
        family: Media family decided from the extension
        sidecar_name: Sidecar resolved by the walker, None if no rule matched
        sidecar_rule: Name of the resolver rule that found it
    """
    path: Path
    family: MediaFamily
    sidecar_name: Optional[str] = None
    sidecar_rule: Optional[str] = None

    @property
    def sidecar_path(self) -> Optional[Path]:
        return self.path.parent / self.sidecar_name if self.sidecar_name else None


@dataclass(frozen=True)
class MigrationWarning:
    """A non-fatal problem on an otherwise successful migration."""
    kind: WarningKind
    detail: str


@dataclass(frozen=True)
class Success:
    """The media file now lives in the output directory with its metadata written."""
    output_path: Path
    source_path: Path
    warnings: List[MigrationWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """The media file (and its sidecar, if any) was diverted to the error directory.

    Attributes:
        source_path: Where the media file was found
        sidecar_path: Sidecar that was resolved, in the source tree
        kind: Why the migration failed
        detail: Human-readable explanation
        error_path: Where the media file was moved, None if the move failed too
    """
    source_path: Path
    sidecar_path: Optional[Path]
    kind: FailureKind
    detail: str
    error_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return False


MigrationResult = Union[Success, Failure]
