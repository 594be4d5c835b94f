"""Page URL validation and resolution of image references."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from .errors import ConfigurationError

ABSOLUTE_URL_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
PAGE_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def validate_page_url(url: str) -> str:
    """Return the stripped page URL or raise ``ConfigurationError``."""
    candidate = (url or "").strip()
    if not candidate:
        raise ConfigurationError("No URL provided")
    if not PAGE_URL_PATTERN.match(candidate):
        raise ConfigurationError(
            f"Invalid URL format - must start with http:// or https://: {candidate}"
        )
    try:
        netloc = urlsplit(candidate).netloc
    except ValueError as exc:
        raise ConfigurationError(f"Invalid URL: {candidate}") from exc
    if not netloc:
        raise ConfigurationError(f"URL has no host: {candidate}")
    return candidate


def page_directory(page_url: str) -> str:
    """Return the page URL up to and including the last ``/`` of its path."""
    parts = urlsplit(page_url)
    assert parts.scheme and parts.netloc, f"Malformed page URL: {page_url!r}"
    path = parts.path or "/"
    return f"{parts.scheme}://{parts.netloc}{path[: path.rfind('/') + 1]}"


def resolve(reference: str, page_url: str) -> str:
    """Turn a possibly relative image reference into an absolute URL.

    Absolute references pass through unchanged. Scheme-relative references
    (``//cdn/a.jpg``) borrow the page scheme, root-relative ones the page
    scheme and host, and everything else is appended to the page directory.
    """
    if ABSOLUTE_URL_PATTERN.match(reference):
        return reference
    parts = urlsplit(page_url)
    assert parts.scheme and parts.netloc, f"Malformed page URL: {page_url!r}"
    if reference.startswith("//"):
        return f"{parts.scheme}:{reference}"
    if reference.startswith("/"):
        return f"{parts.scheme}://{parts.netloc}{reference}"
    return page_directory(page_url) + reference
