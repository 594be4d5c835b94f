"""Output filenames for downloaded images."""

from __future__ import annotations

import re
from typing import AbstractSet
from urllib.parse import urlsplit

from .config import FALLBACK_EXTENSION, KNOWN_IMAGE_EXTENSIONS

EXTENSION_PATTERN = re.compile(r"\.[A-Za-z0-9]+$")
MAX_EXTENSION_CHARS = 8


def extension_for(
    source_url: str, known: AbstractSet[str] = KNOWN_IMAGE_EXTENSIONS
) -> str:
    """Return the trailing image extension of the URL path, as written, or ``.jpg``."""
    try:
        path = urlsplit(source_url).path
    except ValueError:
        return FALLBACK_EXTENSION
    match = EXTENSION_PATTERN.search(path.rsplit("/", 1)[-1])
    if not match:
        return FALLBACK_EXTENSION
    extension = match.group(0)
    if len(extension) > MAX_EXTENSION_CHARS:
        return FALLBACK_EXTENSION
    if extension[1:].lower() not in known:
        return FALLBACK_EXTENSION
    return extension


def name_for(
    ordinal: int,
    source_url: str,
    prefix_len: int,
    static_prefix: str = "",
    known: AbstractSet[str] = KNOWN_IMAGE_EXTENSIONS,
) -> str:
    """Compose ``static_prefix + zero-padded ordinal + extension``.

    Ordinals wider than ``prefix_len`` widen the field instead of being
    truncated, so names stay distinct.
    """
    if ordinal < 1:
        raise ValueError(f"Ordinal must be at least 1, got {ordinal}")
    sequence = str(ordinal).zfill(prefix_len)
    return f"{static_prefix}{sequence}{extension_for(source_url, known)}"
