"""Availability check for the exiftool executable."""

import logging
import shutil
from typing import Optional

from gphotos_migrate.common import ToolNotFoundError

logger = logging.getLogger(__name__)


def find_exiftool(executable: str = "exiftool") -> Optional[str]:
    """
    Locate exiftool.

    Args:
        executable: Command name or path to the exiftool executable

    Returns:
        Absolute path of the executable, or None if it is not on PATH
    """
    return shutil.which(executable)


def check_exiftool(executable: str = "exiftool") -> str:
    """
    Check that exiftool can be started before any file is touched.

    Args:
        executable: Command name or path to the exiftool executable

    Returns:
        Absolute path of the executable

    Raises:
        ToolNotFoundError: If exiftool is not available, with installation instructions
    """
    resolved = find_exiftool(executable)
    if resolved is None:
        logger.error(f"Tool not found: {{'tool': 'exiftool', 'executable': {executable!r}, 'required': True}}")
        raise ToolNotFoundError(
            f"Tool '{executable}' is required but not available.\n\n{_get_installation_instructions()}",
            tool=executable,
        )

    logger.info(f"Tool available: {{'tool': 'exiftool', 'path': {resolved!r}, 'capability': 'metadata writing'}}")
    return resolved


def _get_installation_instructions() -> str:
    return (
        "ExifTool writes the metadata into migrated files. Install it:\n"
        "  - Windows: Download from https://exiftool.org/\n"
        "  - macOS: brew install exiftool\n"
        "  - Linux: sudo apt-get install libimage-exiftool-perl (Debian/Ubuntu)\n"
        "           sudo dnf install perl-Image-ExifTool (Fedora)"
    )
