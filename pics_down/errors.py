"""Exceptions raised by the download pipeline."""

from __future__ import annotations


class PicsDownError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class ConfigurationError(PicsDownError):
    """Invalid user input: bad URL, bad option value or unusable output path."""


class RunLogError(PicsDownError):
    """The run log could not be opened."""


class NoImagesFoundError(PicsDownError):
    """The page did not reference any image of the requested types."""


class FetchError(PicsDownError):
    """A single HTTP fetch failed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
