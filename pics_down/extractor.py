"""Discovery of image URLs in page markup."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Mapping, Sequence, Union
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from .urls import resolve

logger = logging.getLogger("pics_down")

# Limited fallback mode: double-quoted src attributes only.
SRC_PATTERN = re.compile(r'src="([^"]*)"')

Markup = Union[bytes, str]


def _decode(markup: Markup) -> str:
    if isinstance(markup, bytes):
        return markup.decode("utf-8", errors="replace")
    return markup


def find_attribute_values(
    markup: Markup,
    attributes: Sequence[str] = ("src",),
    parser: str = "html",
) -> List[str]:
    """Return raw attribute values in document order."""
    if not markup:
        return []
    if parser == "regex":
        return SRC_PATTERN.findall(_decode(markup))

    soup = BeautifulSoup(markup, "html.parser")
    values: List[str] = []
    for tag in soup.find_all(True):
        for name in attributes:
            value = tag.get(name)
            if isinstance(value, str):
                values.append(value)
    return values


def has_extension(reference: str, extensions: Iterable[str]) -> bool:
    """Check the last path segment of ``reference`` against ``extensions``, ignoring case."""
    segment = urlsplit(reference).path.rsplit("/", 1)[-1]
    stem, dot, extension = segment.rpartition(".")
    if not dot or not stem:
        return False
    return extension.lower() in {ext.lower() for ext in extensions}


def extract(
    markup: Markup,
    page_url: str,
    extensions: Iterable[str],
    *,
    attributes: Sequence[str] = ("src",),
    parser: str = "html",
) -> List[str]:
    """Return the sorted, deduplicated absolute URLs of matching images."""
    extensions = frozenset(ext.lower() for ext in extensions)
    found = set()
    for raw in find_attribute_values(markup, attributes, parser):
        reference = raw.strip()
        if not reference or reference.lower().startswith("data:"):
            continue
        try:
            matched = has_extension(reference, extensions)
        except ValueError as exc:
            logger.debug("Skipping malformed reference %r: %s", reference, exc)
            continue
        if matched:
            found.add(resolve(reference, page_url))
    logger.debug(
        "Found %d %s references on %s", len(found), "/".join(sorted(extensions)), page_url
    )
    return sorted(found)


def extract_batches(
    markup: Markup,
    page_url: str,
    classes: Mapping[str, Iterable[str]],
    *,
    attributes: Sequence[str] = ("src",),
    parser: str = "html",
) -> Dict[str, List[str]]:
    """Run one extraction per extension class, keeping the class order."""
    return {
        label: extract(markup, page_url, extensions, attributes=attributes, parser=parser)
        for label, extensions in classes.items()
    }
