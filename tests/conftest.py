from __future__ import annotations

import io
import threading
from concurrent.futures import ALL_COMPLETED
from concurrent.futures import wait as real_wait
from typing import Dict, List, Optional, Union

import pytest
from rich.console import Console

from pics_down.config import DownloadConfig
from pics_down.errors import FetchError
from pics_down.fetch import FetchResult
from pics_down.runlog import RunLog

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


class FakeFetcher:
    """In-memory stand-in for ``pics_down.fetch.Fetcher``."""

    def __init__(
        self,
        pages: Optional[Dict[str, Union[bytes, FetchError]]] = None,
        images: Optional[Dict[str, Union[bytes, FetchError]]] = None,
        default: Optional[bytes] = JPEG_BYTES,
    ) -> None:
        self.pages = pages or {}
        self.images = images or {}
        self.default = default
        self.requested: List[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def __enter__(self) -> "FakeFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    def fetch_page(self, url: str) -> bytes:
        body = self.pages.get(url, FetchError(url, "HTTP 404"))
        if isinstance(body, FetchError):
            raise body
        return body

    def fetch_image(self, url: str) -> FetchResult:
        with self._lock:
            self.requested.append(url)
        body = self.images.get(url, self.default)
        if body is None:
            raise FetchError(url, "HTTP 404")
        if isinstance(body, FetchError):
            raise body
        return FetchResult(url=url, content=body, content_type="image/jpeg")


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def config(tmp_path) -> DownloadConfig:
    return DownloadConfig(output_dir=tmp_path)


@pytest.fixture
def run_log(config):
    log = RunLog.open(config.log_path, "https://example.com/gallery/index.html")
    yield log
    log.close()


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


def console_text(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture
def interrupt_after_downloads(monkeypatch):
    """Raise ``KeyboardInterrupt`` once the final wait of a batch has returned."""
    state = {"raised": False}

    def wait(futures, timeout=None, return_when=ALL_COMPLETED):
        done = real_wait(futures, timeout=timeout, return_when=return_when)
        if return_when == ALL_COMPLETED and not state["raised"]:
            state["raised"] = True
            raise KeyboardInterrupt
        return done

    monkeypatch.setattr("pics_down.downloader.wait", wait)
    return state
