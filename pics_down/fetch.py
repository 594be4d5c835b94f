"""HTTP access for the page and image downloads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from filetype import guess
from requests.adapters import HTTPAdapter

from .config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .errors import FetchError

logger = logging.getLogger("pics_down")


@dataclass(frozen=True)
class FetchResult:
    url: str
    content: bytes
    content_type: str


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def looks_like_image(content_type: str, data: bytes) -> bool:
    """Reject bodies served as HTML unless their signature says otherwise."""
    media_type = content_type.split(";")[0].strip().lower()
    if media_type not in ("text/html", "application/xhtml+xml"):
        return True
    return detect_image_format(data) is not None


class Fetcher:
    """Thin wrapper around a shared ``requests.Session``."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        pool_size: int = 4,
        verify_content: bool = True,
    ) -> None:
        self.timeout = timeout
        self.verify_content = verify_content
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def get(self, url: str) -> FetchResult:
        """GET ``url`` following redirects; any failure becomes a ``FetchError``."""
        try:
            resp = self.session.get(url, timeout=self.timeout, allow_redirects=True)
            resp.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "error"
            raise FetchError(url, f"HTTP {status}") from exc
        except requests.Timeout as exc:
            raise FetchError(url, "timeout") from exc
        except requests.ConnectionError as exc:
            raise FetchError(url, "connection error") from exc
        except requests.RequestException as exc:
            raise FetchError(url, type(exc).__name__) from exc
        return FetchResult(
            url=resp.url or url,
            content=resp.content,
            content_type=resp.headers.get("Content-Type", ""),
        )

    def fetch_page(self, url: str) -> bytes:
        logger.info("Loading %s", url)
        return self.get(url).content

    def fetch_image(self, url: str) -> FetchResult:
        result = self.get(url)
        if self.verify_content and not looks_like_image(result.content_type, result.content):
            raise FetchError(url, f"not an image ({result.content_type})")
        return result
