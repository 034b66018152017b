"""Depth-first discovery of media files in a Takeout tree.

Each directory is listed once. Its .json names form the sidecar set the
resolver matches against, and every media file gets its sidecar resolved
and claimed before the first candidate of that directory is yielded, so
shared sidecars are counted completely before any migration can release
them.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Iterator, List, Optional

from gphotos_migrate.common import normalize_path, should_scan_file
from .media_types import classify
from .models import MediaCandidate
from .sidecar import read_sidecar_title
from .sidecar_registry import SidecarRegistry
from .sidecar_resolver import resolve_sidecar

logger = logging.getLogger(__name__)

SIDECAR_EXTENSION = ".json"


@dataclass
class DiscoveryStats:
    """Counters kept while walking.

    Attributes:
        directories: Directories listed
        media_files: Media candidates yielded
        sidecars: .json files seen
        unpaired_media: Media candidates with no sidecar
        skipped_files: Non-media files and OS litter left in place
        unreadable_directories: Directories that could not be listed
    """
    directories: int = 0
    media_files: int = 0
    sidecars: int = 0
    unpaired_media: int = 0
    skipped_files: int = 0
    unreadable_directories: int = 0


class MediaDiscovery:
    """Walks a source tree and yields MediaCandidate objects.

    Usage:
        discovery = MediaDiscovery(google_dir, registry)
        for candidate in discovery.walk():
            ...
    """

    def __init__(
        self,
        root: Path,
        registry: Optional[SidecarRegistry] = None,
        exclude: AbstractSet[Path] = frozenset(),
    ):
        self.root = root
        self.registry = registry
        # Output and error directories nested inside the source tree
        self.exclude = {p.resolve() for p in exclude}
        self.stats = DiscoveryStats()

    def walk(self) -> Iterator[MediaCandidate]:
        """Yield media candidates depth-first, entries sorted by name."""
        logger.info(f"Discovery started: {{'root': {str(self.root)!r}}}")
        yield from self._walk_directory(self.root)
        logger.info(
            f"Discovery complete: {{'directories': {self.stats.directories}, 'media_files': {self.stats.media_files}, "
            f"'sidecars': {self.stats.sidecars}, 'unpaired_media': {self.stats.unpaired_media}, "
            f"'skipped_files': {self.stats.skipped_files}}}"
        )

    def _walk_directory(self, directory: Path) -> Iterator[MediaCandidate]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            self.stats.unreadable_directories += 1
            logger.error(f"Cannot read directory, skipping: {{'path': {str(directory)!r}, 'error': {str(e)!r}}}")
            return

        self.stats.directories += 1
        subdirectories: List[Path] = []
        media_entries: List[os.DirEntry] = []
        sidecar_names = set()

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(Path(entry.path))
                    continue
                if not entry.is_file(follow_symlinks=False):
                    self.stats.skipped_files += 1
                    continue
            except OSError as e:
                logger.warning(f"Cannot stat entry, skipping: {{'path': {entry.path!r}, 'error': {str(e)!r}}}")
                self.stats.skipped_files += 1
                continue

            if entry.name.lower().endswith(SIDECAR_EXTENSION):
                sidecar_names.add(entry.name)
            elif should_scan_file(Path(entry.name)) and classify(entry.name) is not None:
                media_entries.append(entry)
            else:
                self.stats.skipped_files += 1

        self.stats.sidecars += len(sidecar_names)
        candidates = [
            self._make_candidate(directory, entry, frozenset(sidecar_names))
            for entry in media_entries
        ]

        for candidate in candidates:
            self.stats.media_files += 1
            yield candidate

        for subdirectory in subdirectories:
            if subdirectory.resolve() in self.exclude:
                logger.info(f"Skipping excluded directory: {{'path': {normalize_path(subdirectory)!r}}}")
                continue
            yield from self._walk_directory(subdirectory)

    def _make_candidate(self, directory: Path, entry: os.DirEntry, sidecar_names: frozenset) -> MediaCandidate:
        def title_of(sidecar_name: str) -> Optional[str]:
            return read_sidecar_title(directory / sidecar_name)

        match = resolve_sidecar(entry.name, sidecar_names, title_of)
        if match is None:
            self.stats.unpaired_media += 1
        elif self.registry is not None:
            self.registry.claim(directory / match.name)

        return MediaCandidate(
            path=Path(entry.path),
            family=classify(entry.name),
            sidecar_name=match.name if match else None,
            sidecar_rule=match.rule if match else None,
        )


def discover_media(
    root: Path,
    registry: Optional[SidecarRegistry] = None,
    exclude: AbstractSet[Path] = frozenset(),
) -> Iterator[MediaCandidate]:
    """Convenience wrapper around MediaDiscovery.walk()."""
    return MediaDiscovery(root, registry, exclude).walk()
