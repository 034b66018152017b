"""Pairing of media files with their Takeout JSON sidecars.

Google Takeout names sidecars with several lossy conventions:

- ``IMG_0001.JPG.json``                       exact
- ``IMG_0001.JPG.supplemental-metadata.json`` newer exports
- ``IMG_0001.JPG(1).json`` for ``IMG_0001(1).JPG``  duplicate counter moves
- ``A_very_long_filename_that_exceeds_forty_six_ch.json``  stem cut at 46 chars
- ``IMG_0002.jpg.json`` for ``IMG_0002-edited.jpg``  edited copies share it
- ``IMG_0003.HEIC.json`` for ``IMG_0003.MOV``  Apple Live Photo halves

Each convention is one row of SIDECAR_RULES: a function from the media
file name to the sidecar names it may have. Rows are tried in order and
the first row with an existing candidate wins. Supporting a new quirk
means adding a row.

Resolution is a pure function of the media file name and the set of
sidecar names in its directory.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Callable, Dict, List, NamedTuple, Optional

from gphotos_migrate.common import normalize_name

logger = logging.getLogger(__name__)

# Google caps the sidecar stem at this many characters of the original name
TRUNCATION_LENGTH = 46

SUPPLEMENTAL_TAIL = ".supplemental-metadata"

# Characters Takeout may rewrite when it names a file on disk
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")

# Localized tails Google appends to user-edited copies
EDITED_SUFFIXES = (
    "-edited",
    "-bearbeitet",
    "-modifié",
    "-modificato",
    "-editado",
    "-bewerkt",
    "-redigert",
)

LIVE_PHOTO_VIDEO_EXTENSIONS = frozenset({".mp4", ".mov"})
LIVE_PHOTO_IMAGE_EXTENSIONS = (".HEIC", ".heic", ".JPG", ".jpg", ".JPEG", ".jpeg")

_DUPLICATE_SUFFIX_RE = re.compile(r'^(?P<base>.*?)(?P<suffix>\(\d+\))$')


class SidecarRule(NamedTuple):
    """One naming convention: media file name -> candidate sidecar names."""
    name: str
    candidates: Callable[[str], List[str]]


@dataclass(frozen=True)
class SidecarMatch:
    """A resolved sidecar name and the rule that produced it."""
    name: str
    rule: str


def split_duplicate_suffix(stem: str) -> tuple[str, str]:
    """
    Split a trailing "(N)" duplicate counter off a file stem.

    Examples:
        >>> split_duplicate_suffix("IMG_0001(1)")
        ('IMG_0001', '(1)')
        >>> split_duplicate_suffix("IMG_0001")
        ('IMG_0001', '')
    """
    match = _DUPLICATE_SUFFIX_RE.match(stem)
    if match and match.group('base'):
        return match.group('base'), match.group('suffix')
    return stem, ""


def strip_edited_suffix(stem: str) -> Optional[str]:
    """
    Remove a localized "-edited" tail from a stem (case-insensitive).

    Returns:
        The stem without the tail, or None if there is no tail
    """
    lowered = normalize_name(stem).lower()
    for suffix in EDITED_SUFFIXES:
        if lowered.endswith(suffix) and len(lowered) > len(suffix):
            return normalize_name(stem)[:-len(suffix)]
    return None


def _split_name(name: str) -> tuple[str, str]:
    path = Path(name)
    return path.stem, path.suffix


def _truncate(name: str) -> str:
    return name[:TRUNCATION_LENGTH]


def _dedupe(names: List[str]) -> List[str]:
    return list(dict.fromkeys(names))


def exact_candidates(name: str) -> List[str]:
    return [f"{name}.json"]


def supplemental_candidates(name: str) -> List[str]:
    # Names at or over the cap lose the whole tail; the truncated rule covers those
    stem, ext = _split_name(name)
    base, duplicate = split_duplicate_suffix(stem)
    candidates = [f"{name}{SUPPLEMENTAL_TAIL}.json"]
    if len(name) < TRUNCATION_LENGTH:
        candidates.append(f"{_truncate(name + SUPPLEMENTAL_TAIL)}.json")
    if duplicate:
        original = f"{base}{ext}"
        candidates.append(f"{original}{SUPPLEMENTAL_TAIL}{duplicate}.json")
        if len(original) < TRUNCATION_LENGTH:
            candidates.append(f"{_truncate(original + SUPPLEMENTAL_TAIL)}{duplicate}.json")
    return _dedupe(candidates)


def duplicate_suffix_candidates(name: str) -> List[str]:
    """Extension-less sidecars and the "(N)" counter moved behind the extension."""
    stem, ext = _split_name(name)
    candidates = [f"{stem}.json"] if ext else []
    base, duplicate = split_duplicate_suffix(stem)
    if duplicate:
        original = f"{base}{ext}"
        candidates.append(f"{original}{duplicate}.json")
        candidates.append(f"{_truncate(original)}{duplicate}.json")
    return _dedupe(candidates)


def duplicate_original_candidates(name: str) -> List[str]:
    """A numbered duplicate falling back to the un-numbered original's sidecar."""
    stem, ext = _split_name(name)
    base, duplicate = split_duplicate_suffix(stem)
    if not duplicate:
        return []
    return [f"{base}{ext}.json"]


def truncated_candidates(name: str) -> List[str]:
    if len(name) <= TRUNCATION_LENGTH:
        return []
    return [f"{_truncate(name)}.json"]


# Rules an edited copy or a Live Photo half is retried against
_BASE_RULES: List[SidecarRule] = [
    SidecarRule("exact", exact_candidates),
    SidecarRule("supplemental", supplemental_candidates),
    SidecarRule("duplicate_suffix", duplicate_suffix_candidates),
    SidecarRule("duplicate_original", duplicate_original_candidates),
    SidecarRule("truncated", truncated_candidates),
]


def _base_candidates(name: str) -> List[str]:
    names: List[str] = []
    for rule in _BASE_RULES:
        names.extend(rule.candidates(name))
    return _dedupe(names)


def edited_candidates(name: str) -> List[str]:
    stem, ext = _split_name(name)
    base, duplicate = split_duplicate_suffix(stem)
    original = strip_edited_suffix(base)
    if original is None:
        return []
    return _base_candidates(f"{original}{duplicate}{ext}")


def live_photo_candidates(name: str) -> List[str]:
    stem, ext = _split_name(name)
    if ext.lower() not in LIVE_PHOTO_VIDEO_EXTENSIONS:
        return []
    names: List[str] = []
    for image_ext in LIVE_PHOTO_IMAGE_EXTENSIONS:
        names.extend(_base_candidates(f"{stem}{image_ext}"))
    return _dedupe(names)


SIDECAR_RULES: List[SidecarRule] = [
    *_BASE_RULES,
    SidecarRule("edited", edited_candidates),
    SidecarRule("live_photo", live_photo_candidates),
]


def resolve_sidecar(
    media_name: str,
    sidecar_names: AbstractSet[str],
    title_of: Optional[Callable[[str], Optional[str]]] = None,
) -> Optional[SidecarMatch]:
    """
    Find the sidecar of a media file among the sidecars of its directory.

    Rules are tried in SIDECAR_RULES order; the first rule with an
    existing candidate wins. If that rule finds several, the one whose
    title equals the media file name wins, otherwise the
    lexicographically smallest.

    Args:
        media_name: File name of the media file (no directory)
        sidecar_names: Names of the .json files in the same directory
        title_of: Optional lookup of a sidecar's `title`, used only to
            break ties inside one rule

    Returns:
        The match, or None if no rule matched
    """
    media_name = normalize_name(media_name)
    # Sidecar names may be NFD on disk; match on NFC, return the on-disk name
    by_normalized: Dict[str, str] = {}
    for sidecar_name in sorted(sidecar_names):
        by_normalized.setdefault(normalize_name(sidecar_name), sidecar_name)

    for rule in SIDECAR_RULES:
        found = sorted({
            by_normalized[candidate]
            for candidate in rule.candidates(media_name)
            if candidate in by_normalized
        })
        if not found:
            continue

        if len(found) > 1:
            logger.debug(
                f"Several sidecars for one rule: {{'media': {media_name!r}, 'rule': {rule.name!r}, 'sidecars': {found!r}}}"
            )
            chosen = _pick_by_title(media_name, found, title_of) or found[0]
        else:
            chosen = found[0]

        logger.debug(f"Sidecar resolved: {{'media': {media_name!r}, 'sidecar': {chosen!r}, 'rule': {rule.name!r}}}")
        return SidecarMatch(name=chosen, rule=rule.name)

    logger.debug(f"No sidecar rule matched: {{'media': {media_name!r}}}")
    return None


def _pick_by_title(
    media_name: str,
    found: List[str],
    title_of: Optional[Callable[[str], Optional[str]]],
) -> Optional[str]:
    if title_of is None:
        return None
    for name in found:
        title = title_of(name)
        if title is not None and normalize_name(title) == media_name:
            return name
    return None


def _comparable_stem(name: str) -> str:
    stem = Path(normalize_name(name).casefold()).stem
    stem, _ = split_duplicate_suffix(stem)
    edited = strip_edited_suffix(stem)
    if edited is not None:
        stem, _ = split_duplicate_suffix(edited)
    return stem


def title_matches_media(title: str, media_name: str, rule: Optional[str] = None) -> bool:
    """
    Decide whether a sidecar title can describe this media file.

    Both names lose their extension, a "(N)" counter and an edited tail;
    they reconcile if equal or if one is a prefix of the other, since
    Google truncates long media names as well. An empty title always
    reconciles. A sidecar found by the exact rule also reconciles when
    the title differs from the media name only in characters Takeout
    may replace or drop when it writes files (outside [A-Za-z0-9._-]).

    Examples:
        >>> title_matches_media("IMG_0001.JPG", "IMG_0001(1).JPG")
        True
        >>> title_matches_media("IMG_1234.HEIC", "IMG_1234.MOV")
        True
        >>> title_matches_media("holiday.jpg", "IMG_0001.jpg")
        False
    """
    if not title:
        return True
    if rule == "exact" and _differs_only_in_unsafe_chars(normalize_name(title), normalize_name(media_name)):
        return True
    title_stem = _comparable_stem(title)
    media_stem = _comparable_stem(media_name)
    if not title_stem or not media_stem:
        return True
    return title_stem.startswith(media_stem) or media_stem.startswith(title_stem)


def _differs_only_in_unsafe_chars(title: str, media_name: str) -> bool:
    if _UNSAFE_CHARS.sub("", title) == _UNSAFE_CHARS.sub("", media_name):
        return True
    if len(title) != len(media_name):
        return False
    return all(
        a == b or _UNSAFE_CHARS.fullmatch(a) or _UNSAFE_CHARS.fullmatch(b)
        for a, b in zip(title, media_name)
    )
