"""
Naming utilities for the inbox organizer.

Generic-name detection, already-organized detection, filename sanitization
and uniqueness suffixing.
"""

import re
from pathlib import Path
from typing import Callable

from domains.inbox_organizer.models import Category

MAX_BASE_NAME_LENGTH = 100

# Auto-generated, non-descriptive stems. Any match means the file should be
# processed even if it looks named.
GENERIC_NAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"^IMG_\d+$",
        r"^DSC_?\d+$",
        r"^Screenshot[\s_-].*\d{4}-\d{2}-\d{2}",
        r"^screencapture-.*\d{4}-\d{2}-\d{2}",
        r"^ChatGPT Image",
        r"^Untitled",
        r"^Document\d*$",
        r"^download",
        r"^temp",
        r"^Invoice-[A-Z0-9]+",
        r"^NXT[a-zA-Z0-9]+",
        r"^\d+$",
        r"^[a-f0-9]{32}$",  # MD5 hash
    )
)

COMPOUND_SUFFIXES = (".tar.gz", ".tar.bz2", ".tar.xz")

DATE_SUFFIX_PATTERN = re.compile(r"_\d{4}-\d{2}-\d{2}(?:_\d+)?$")
CATEGORY_PREFIX_PATTERN = re.compile(
    r"^(?:" + "|".join(re.escape(label) for label in Category.labels()) + r")_"
)

_SANITIZE_TABLE = str.maketrans({
    " ": "_",
    "/": "-",
    "\\": "-",
    ":": "-",
    ",": None,
    "'": None,
})


def split_name(name: str) -> tuple[str, str]:
    """
    Split a filename into stem and extension (without the dot).

    Known compound suffixes such as ``.tar.gz`` stay together.
    """
    lowered = name.lower()
    for suffix in COMPOUND_SUFFIXES:
        if lowered.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)], name[-len(suffix) + 1:]

    path = Path(name)
    return path.stem, path.suffix.lstrip(".")


def is_generic(stem: str) -> bool:
    """Check whether a filename stem matches an auto-generated naming pattern."""
    return any(pattern.search(stem) for pattern in GENERIC_NAME_PATTERNS)


def is_already_organized(stem: str) -> bool:
    """
    Check whether a stem carries the organizer's own naming structure.

    Both a leading category label and a trailing ``_YYYY-MM-DD`` date (with an
    optional ``_N`` collision counter) are required.
    """
    return bool(DATE_SUFFIX_PATTERN.search(stem)) and bool(CATEGORY_PREFIX_PATTERN.match(stem))


def sanitize_component(text: str) -> str:
    """Make text safe to embed in a filename."""
    sanitized = text.translate(_SANITIZE_TABLE)
    sanitized = re.sub(r"[\x00-\x1f]", "", sanitized)
    sanitized = re.sub(r"_{2,}", "_", sanitized)
    return sanitized.strip("._")


def truncate_base_name(descriptive: str, suffix: str, limit: int = MAX_BASE_NAME_LENGTH) -> str:
    """
    Join a descriptive part and a suffix with ``_`` within ``limit`` characters.

    Truncation removes characters from the descriptive part only.
    """
    room = limit - len(suffix) - 1
    if room <= 0:
        return suffix[:limit]
    trimmed = descriptive[:room].rstrip("_-")
    return f"{trimmed}_{suffix}" if trimmed else suffix


def build_filename(base_name: str, extension: str, counter: int = 0) -> str:
    """Compose ``base[_counter][.ext]``."""
    stem = f"{base_name}_{counter}" if counter else base_name
    return f"{stem}.{extension}" if extension else stem


def unique_target(
    source: Path,
    base_name: str,
    extension: str,
    exists: Callable[[Path], bool] = Path.exists,
) -> Path:
    """
    Find a free target path next to ``source``.

    Tries ``base.ext`` then ``base_1.ext``, ``base_2.ext``, ... with no fixed
    ceiling. Returns ``source`` itself when a candidate equals it.
    """
    directory = source.parent
    counter = 0
    while True:
        target = directory / build_filename(base_name, extension, counter)
        if target == source or not exists(target):
            return target
        counter += 1
