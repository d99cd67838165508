"""
File helpers: extension handling and MIME type detection.
"""

import mimetypes
import os
from typing import FrozenSet, Iterable

# Extensions Python's mimetypes table does not know on every platform.
_EXTRA_MIME_TYPES = {
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}


def get_file_extension(filename: str) -> str:
    """
    Returns the lower-cased extension of a filename, including the dot.

    Args:
        filename: file name or path

    Returns:
        The extension (e.g. ".jpg"), or an empty string if there is none
    """
    _, extension = os.path.splitext(filename)
    return extension.lower()


def normalize_extensions(extensions: Iterable[str]) -> FrozenSet[str]:
    """Lower-cases an extension allow-list and makes sure each entry starts with a dot."""
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(normalized)


def has_allowed_extension(filename: str, allowed: Iterable[str]) -> bool:
    return get_file_extension(filename) in normalize_extensions(allowed)


def detect_mime_type(filename: str, fallback: str = "image/jpeg") -> str:
    """
    Detects the MIME type of a file from its extension.

    Args:
        filename: file name or path
        fallback: value returned when the type cannot be detected

    Returns:
        The detected MIME type or the fallback
    """
    extension = get_file_extension(filename)
    if extension in _EXTRA_MIME_TYPES:
        return _EXTRA_MIME_TYPES[extension]
    detected_mime_type, _ = mimetypes.guess_type(filename)
    return detected_mime_type or fallback


def parse_tags(raw: str | None) -> list[str] | None:
    """Splits a comma-separated tag string; returns None when nothing is left."""
    if raw is None:
        return None
    tags = [t.strip() for t in raw.split(",") if t.strip()]
    return tags or None
