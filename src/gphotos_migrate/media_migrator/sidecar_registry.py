"""Reference counting for sidecars shared by several media files.

An edited copy and its original, or both halves of a Live Photo, resolve
to the same sidecar. The walker claims the sidecar once per media file
before any of them is migrated; each finished migration releases one
claim. Only the last release touches the source sidecar:

- success: the sidecar is deleted from the source tree
- failure: the sidecar is moved beside the diverted media file

A failed migration that is not the last user gets a copy instead, so
every diverted media file has its sidecar next to it whatever order the
migrations finish in.
"""

import logging
import shutil
import threading
from collections import Counter
from pathlib import Path

logger = logging.getLogger(__name__)


def error_sidecar_path(error_media_path: Path) -> Path:
    """Where a diverted media file's sidecar goes: `<media name>.json` beside it."""
    return error_media_path.with_name(f"{error_media_path.name}.json")


class SidecarRegistry:
    """Thread-safe claim counts per source sidecar path."""

    def __init__(self):
        self._lock = threading.Lock()
        self._claims: Counter = Counter()

    def claim(self, sidecar_path: Path) -> int:
        """Register one more media file using this sidecar; returns the new count."""
        with self._lock:
            self._claims[sidecar_path] += 1
            return self._claims[sidecar_path]

    def claims(self, sidecar_path: Path) -> int:
        with self._lock:
            return self._claims[sidecar_path]

    def _release(self, sidecar_path: Path) -> int:
        # Caller holds the lock; unclaimed sidecars count as single-use
        remaining = max(self._claims[sidecar_path] - 1, 0)
        if remaining:
            self._claims[sidecar_path] = remaining
        else:
            del self._claims[sidecar_path]
        return remaining

    def release_success(self, sidecar_path: Path) -> bool:
        """
        Release a claim after a successful migration.

        Returns:
            True if this was the last claim and the sidecar was deleted

        Raises:
            OSError: If the sidecar cannot be deleted
        """
        with self._lock:
            if self._release(sidecar_path):
                return False
            sidecar_path.unlink(missing_ok=True)

        logger.debug(f"Sidecar removed from source: {{'sidecar': {str(sidecar_path)!r}}}")
        return True

    def release_failure(self, sidecar_path: Path, error_media_path: Path) -> Path:
        """
        Release a claim after a failed migration and place the sidecar beside the media file.

        Args:
            sidecar_path: Sidecar in the source tree
            error_media_path: Where the media file was diverted to

        Returns:
            Path of the sidecar in the error directory

        Raises:
            OSError: If the sidecar cannot be moved or copied
        """
        destination = error_sidecar_path(error_media_path)
        # File operations stay under the lock so a copy never races the final move
        with self._lock:
            if self._release(sidecar_path):
                shutil.copy2(sidecar_path, destination)
                logger.warning(
                    f"Shared sidecar copied to error directory: {{'sidecar': {str(sidecar_path)!r}, 'destination': {str(destination)!r}}}"
                )
            else:
                shutil.move(str(sidecar_path), str(destination))
                logger.debug(f"Sidecar moved to error directory: {{'sidecar': {str(sidecar_path)!r}, 'destination': {str(destination)!r}}}")

        return destination
