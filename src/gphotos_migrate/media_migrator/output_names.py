"""Collision-free file names in a flat target directory."""

import logging
import threading
from pathlib import Path
from typing import Set

logger = logging.getLogger(__name__)


def numbered_name(name: str, number: int) -> str:
    """
    Insert a " (N)" counter before the extension.

    Examples:
        >>> numbered_name("IMG_0003.JPG", 2)
        'IMG_0003 (2).JPG'
        >>> numbered_name("README", 3)
        'README (3)'
    """
    path = Path(name)
    if path.suffix and path.stem:
        return f"{path.stem} ({number}){path.suffix}"
    return f"{name} ({number})"


class UniqueNameAllocator:
    """Hands out names that are unique inside one directory.

    Reservation is serialized, so concurrent migrations never pick the same
    collision suffix. A name counts as taken if it exists on disk or was
    reserved earlier in this run; comparison ignores case so the layout is
    the same on case-insensitive filesystems.
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self._lock = threading.Lock()
        self._reserved: Set[str] = set()

    def reserve(self, name: str) -> Path:
        """
        Reserve a free name derived from `name`.

        Returns:
            Path inside the directory; nothing is created on disk
        """
        with self._lock:
            candidate = name
            number = 1
            while candidate.casefold() in self._reserved or (self.directory / candidate).exists():
                number += 1
                candidate = numbered_name(name, number)
            self._reserved.add(candidate.casefold())

        if candidate != name:
            logger.debug(f"Name collision resolved: {{'name': {name!r}, 'assigned': {candidate!r}}}")
        return self.directory / candidate

    def release(self, path: Path) -> None:
        """Give back a reservation whose file was never created."""
        with self._lock:
            self._reserved.discard(path.name.casefold())
