"""Migration of a single media file.

Pipeline for one candidate:
1. Load the sidecar resolved by the walker and reconcile its title
2. Copy the media file to a hidden temporary name in the output directory
3. Write the metadata into the copy and stamp its mtime
4. Rename the copy to a unique final name
5. Remove the media file and release the sidecar in the source tree

Any failure unlinks the temporary copy and diverts the media file, and
its sidecar, to the error directory. Every error is caught here and
turned into a Failure result.
"""

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import List, Optional

from .errors import (
    FailureKind,
    FilesystemError,
    SidecarMalformedError,
    SidecarNotFoundError,
    TaskTimeoutError,
    WarningKind,
    classify_error,
)
from .media_types import detect_corrected_name
from .metadata_writer import MetadataWriter
from .models import Failure, MediaCandidate, MigrationResult, MigrationWarning, Success
from .output_names import UniqueNameAllocator
from .sidecar import load_sidecar
from .sidecar_registry import SidecarRegistry
from .sidecar_resolver import title_matches_media

logger = logging.getLogger(__name__)

# exiftool -overwrite_original writes here before replacing the file
EXIFTOOL_TEMP_SUFFIX = "_exiftool_tmp"


class FileMigrator:
    """Moves one media file at a time to the output or the error directory.

    Safe to share between worker threads: name allocation and sidecar
    release are serialized by their own locks.
    """

    def __init__(
        self,
        output_dir: Path,
        error_dir: Path,
        writer: MetadataWriter,
        registry: Optional[SidecarRegistry] = None,
        fix_extensions: bool = True,
    ):
        self.output_dir = output_dir
        self.error_dir = error_dir
        self.writer = writer
        self.registry = registry or SidecarRegistry()
        self.fix_extensions = fix_extensions
        self.output_names = UniqueNameAllocator(output_dir)
        self.error_names = UniqueNameAllocator(error_dir)

    def migrate(self, candidate: MediaCandidate) -> MigrationResult:
        """
        Migrate one media file.

        Args:
            candidate: Media file and the sidecar the walker resolved for it

        Returns:
            Success with the output path, or Failure with kind and detail
        """
        sidecar_path = candidate.sidecar_path
        temp_path: Optional[Path] = None

        try:
            if sidecar_path is None:
                raise SidecarNotFoundError(f"No sidecar found for {candidate.path.name}", path=str(candidate.path))

            document = load_sidecar(sidecar_path)
            if not title_matches_media(document.title, candidate.path.name, candidate.sidecar_rule):
                raise SidecarMalformedError(
                    f"Sidecar {sidecar_path.name} (rule {candidate.sidecar_rule}) describes "
                    f"{document.title!r}, not {candidate.path.name!r}",
                    path=str(sidecar_path),
                    rule=candidate.sidecar_rule,
                )

            target_name = candidate.path.name
            if self.fix_extensions:
                target_name = detect_corrected_name(candidate.path, candidate.family) or target_name

            temp_path = self.output_dir / f".{uuid.uuid4().hex}{Path(target_name).suffix}"
            self._copy(candidate.path, temp_path)

            warnings = self.writer.write(temp_path, document, candidate.family)

            output_path = self._finalize(temp_path, target_name)
            temp_path = None
        except Exception as e:
            if temp_path is not None:
                self._discard_temp(temp_path, timed_out=isinstance(e, TaskTimeoutError))
            return self._divert(candidate, sidecar_path, classify_error(e), str(e))

        warnings.extend(self._cleanup_source(candidate, sidecar_path))
        logger.debug(f"Migrated: {{'source': {str(candidate.path)!r}, 'output': {str(output_path)!r}}}")
        return Success(output_path=output_path, source_path=candidate.path, warnings=warnings)

    @staticmethod
    def _copy(source: Path, destination: Path) -> None:
        try:
            shutil.copy2(source, destination)
        except OSError as e:
            raise FilesystemError(f"Cannot copy {source.name} to output directory: {e}", path=str(source)) from e

    def _finalize(self, temp_path: Path, target_name: str) -> Path:
        output_path = self.output_names.reserve(target_name)
        try:
            os.rename(temp_path, output_path)
        except OSError as e:
            self.output_names.release(output_path)
            raise FilesystemError(f"Cannot rename to {output_path.name}: {e}", path=str(output_path)) from e
        return output_path

    def _discard_temp(self, temp_path: Path, timed_out: bool = False) -> None:
        leftovers = [temp_path]
        if timed_out:
            leftovers.append(temp_path.with_name(temp_path.name + EXIFTOOL_TEMP_SUFFIX))
        for path in leftovers:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Failed to remove temporary file: {{'path': {str(path)!r}, 'error': {str(e)!r}}}")

    def _cleanup_source(self, candidate: MediaCandidate, sidecar_path: Optional[Path]) -> List[MigrationWarning]:
        warnings: List[MigrationWarning] = []
        try:
            candidate.path.unlink()
        except OSError as e:
            logger.warning(f"Failed to remove migrated source file: {{'path': {str(candidate.path)!r}, 'error': {str(e)!r}}}")
            warnings.append(MigrationWarning(WarningKind.SOURCE_NOT_REMOVED, f"source not removed: {e}"))

        if sidecar_path is not None:
            try:
                self.registry.release_success(sidecar_path)
            except OSError as e:
                logger.warning(f"Failed to remove sidecar: {{'path': {str(sidecar_path)!r}, 'error': {str(e)!r}}}")
                warnings.append(MigrationWarning(WarningKind.SIDECAR_NOT_REMOVED, f"sidecar not removed: {e}"))
        return warnings

    def _divert(
        self,
        candidate: MediaCandidate,
        sidecar_path: Optional[Path],
        kind: FailureKind,
        detail: str,
    ) -> Failure:
        error_path: Optional[Path] = self.error_names.reserve(candidate.path.name)
        try:
            shutil.move(str(candidate.path), str(error_path))
        except OSError as e:
            logger.error(f"Failed to move media to error directory: {{'path': {str(candidate.path)!r}, 'error': {str(e)!r}}}")
            self.error_names.release(error_path)
            error_path = None
            detail = f"{detail}; not moved to error directory: {e}"

        if sidecar_path is not None and error_path is not None:
            try:
                self.registry.release_failure(sidecar_path, error_path)
            except OSError as e:
                logger.error(f"Failed to move sidecar to error directory: {{'path': {str(sidecar_path)!r}, 'error': {str(e)!r}}}")
                detail = f"{detail}; sidecar not moved: {e}"

        logger.debug(f"Diverted: {{'source': {str(candidate.path)!r}, 'kind': {kind.value!r}, 'detail': {detail!r}}}")
        return Failure(
            source_path=candidate.path,
            sidecar_path=sidecar_path,
            kind=kind,
            detail=detail,
            error_path=error_path,
        )
