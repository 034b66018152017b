"""Media classification by file extension.

The extension decides both whether a file is migrated at all and which
tag dialect the metadata writer targets.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import filetype

logger = logging.getLogger(__name__)


class MediaFamily(str, Enum):
    """Media family of a file, decided from its extension."""

    IMAGE = "image"
    VIDEO = "video"
    MOTION_PHOTO = "motion_photo"
    RAW = "raw"

    @property
    def tag_dialect(self) -> str:
        """Tag groups the writer targets: 'exif', 'quicktime' or 'xmp'."""
        return _TAG_DIALECTS[self]


_TAG_DIALECTS = {
    MediaFamily.IMAGE: "exif",
    MediaFamily.VIDEO: "quicktime",
    # Google Motion Photo containers are written like videos
    MediaFamily.MOTION_PHOTO: "quicktime",
    MediaFamily.RAW: "xmp",
}

IMAGE_EXTENSIONS = frozenset({
    'jpg', 'jpeg', 'png', 'gif', 'webp', 'heic', 'heif', 'bmp', 'tif', 'tiff',
})
VIDEO_EXTENSIONS = frozenset({
    'mp4', 'mov', 'm4v', 'mkv', 'webm', '3gp', 'avi', 'mpg', 'mpeg',
})
MOTION_PHOTO_EXTENSIONS = frozenset({'mp'})
RAW_EXTENSIONS = frozenset({
    'arw', 'cr2', 'cr3', 'dng', 'nef', 'orf', 'raf', 'rw2',
})

_EXTENSION_TABLE = {
    **{ext: MediaFamily.IMAGE for ext in IMAGE_EXTENSIONS},
    **{ext: MediaFamily.VIDEO for ext in VIDEO_EXTENSIONS},
    **{ext: MediaFamily.MOTION_PHOTO for ext in MOTION_PHOTO_EXTENSIONS},
    **{ext: MediaFamily.RAW for ext in RAW_EXTENSIONS},
}

# Spellings of the same container; never "corrected" into each other
_SAME_TYPE = {
    'jpeg': 'jpg',
    'tif': 'tiff',
    'heif': 'heic',
}


def extension_of(filename: str) -> str:
    """Final extension, lowercased and without the dot ('' if none)."""
    suffix = Path(filename).suffix
    return suffix[1:].lower() if suffix else ''


def classify(filename: str) -> Optional[MediaFamily]:
    """
    Determine the media family of a file name.

    Args:
        filename: File name or path; only the final extension is used

    Returns:
        The MediaFamily, or None for non-media (including .json sidecars)

    Examples:
        >>> classify("IMG_0001.JPG")
        <MediaFamily.IMAGE: 'image'>
        >>> classify("IMG_0001.JPG.json") is None
        True
    """
    return _EXTENSION_TABLE.get(extension_of(filename))


def detect_corrected_name(path: Path, family: MediaFamily) -> Optional[str]:
    """
    Return a file name with the extension its content actually has.

    Only images are corrected: video containers share the ISO-BMFF
    signature and RAW formats are often sniffed as TIFF, so the content
    guess is not precise enough for them.

    Args:
        path: Media file to sniff
        family: Family the classifier assigned from the extension

    Returns:
        Corrected file name, or None if the extension is already right
        or the content is not recognised

    Raises:
        OSError: If the file cannot be read
    """
    if family is not MediaFamily.IMAGE:
        return None

    kind = filetype.guess(str(path))
    if kind is None:
        return None

    detected = kind.extension.lower()
    if detected not in IMAGE_EXTENSIONS:
        return None

    current = extension_of(path.name)
    if _SAME_TYPE.get(detected, detected) == _SAME_TYPE.get(current, current):
        return None

    original_suffix = path.suffix[1:]
    new_suffix = detected.upper() if original_suffix.isupper() else detected
    corrected = f"{path.stem}.{new_suffix}"
    logger.info(
        f"Extension does not match content: {{'path': {str(path)!r}, 'detected': {kind.mime!r}, 'name': {corrected!r}}}"
    )
    return corrected
