"""Path utilities shared by the walker, the resolver and the CLI."""

import os
import unicodedata
from pathlib import Path

# System files that are never media, whatever their extension says
SYSTEM_FILES = {
    'thumbs.db',      # Windows thumbnail cache
    'desktop.ini',    # Windows folder settings
    '.ds_store',      # macOS folder metadata
    'icon\r',         # macOS custom folder icon (has literal carriage return!)
}

# AppleDouble resource forks copied onto non-HFS volumes
APPLE_DOUBLE_PREFIX = '._'


def normalize_name(name: str) -> str:
    """Unicode NFC normalization of a file name.

    Takeout archives unpacked on macOS often carry NFD names while the
    sidecar `title` field is NFC; comparisons must happen on one form.

    Examples:
        >>> normalize_name("cafe\\u0301.jpg") == "caf\\u00e9.jpg"
        True
    """
    return unicodedata.normalize('NFC', name)


def normalize_path(path: Path | str) -> str:
    """NFC-normalized path string with forward slashes."""
    return normalize_name(str(path)).replace('\\', '/')


def should_scan_file(path: Path) -> bool:
    """Exclude OS litter before the media classifier sees a file.

    Hidden files are NOT excluded: Takeout contains valid media such as
    `.facebook_865716343.jpg`.
    """
    filename = path.name.lower()
    if filename in SYSTEM_FILES:
        return False
    if filename.startswith(APPLE_DOUBLE_PREFIX):
        return False
    return True


def is_empty_dir(path: Path) -> bool:
    """True if the directory has no entries at all.

    Raises:
        OSError: If the directory cannot be listed
    """
    with os.scandir(path) as entries:
        return next(entries, None) is None
