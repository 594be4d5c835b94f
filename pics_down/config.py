"""Configuration objects and constants for the downloader."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Tuple

from .errors import ConfigurationError

DEFAULT_USER_AGENT = "Mozilla/5.0"
DEFAULT_PREFIX_LEN = 2
DEFAULT_WORKERS = 4
DEFAULT_TIMEOUT = 30.0
LOG_FILE_NAME = "pics-down.log"
URL_LIST_NAME = "image_urls.txt"
FALLBACK_EXTENSION = ".jpg"
PARSER_MODES = ("html", "regex")

EXTENSION_CLASSES: Dict[str, FrozenSet[str]] = {
    "jpg": frozenset({"jpg", "jpeg"}),
    "png": frozenset({"png"}),
    "other": frozenset({"svg", "tiff", "avif", "gif", "bmp", "webp"}),
}

KNOWN_IMAGE_EXTENSIONS: FrozenSet[str] = frozenset().union(
    *EXTENSION_CLASSES.values(), {"tif", "ico"}
)


def parse_extension_list(value: str) -> FrozenSet[str]:
    """Turn ``"jpg, .PNG"`` into ``{"jpg", "png"}``."""
    extensions = {
        part.strip().lstrip(".").lower() for part in value.split(",") if part.strip()
    }
    if not extensions or not all(ext.isalnum() for ext in extensions):
        raise ConfigurationError(f"Invalid extension list: {value!r}")
    return frozenset(extensions)


@dataclass(frozen=True)
class DownloadConfig:
    """Settings for one run, built once by the CLI and passed to every component."""

    output_dir: Path
    prefix_len: int = DEFAULT_PREFIX_LEN
    static_prefix: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    verbose: bool = False
    keep_url_list: bool = False
    workers: int = DEFAULT_WORKERS
    timeout: float = DEFAULT_TIMEOUT
    parser: str = "html"
    attributes: Tuple[str, ...] = ("src",)
    verify_content: bool = True
    extra_extensions: FrozenSet[str] = frozenset()
    log_file_name: str = LOG_FILE_NAME
    url_list_name: str = URL_LIST_NAME

    def __post_init__(self) -> None:
        if self.prefix_len < 0:
            raise ConfigurationError("Prefix length must not be negative")
        if self.workers < 1:
            raise ConfigurationError("At least one worker is required")
        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive")
        if self.parser not in PARSER_MODES:
            raise ConfigurationError(f"Unknown parser mode: {self.parser}")
        if not self.attributes:
            raise ConfigurationError("At least one attribute name is required")
        if "/" in self.static_prefix or "\\" in self.static_prefix:
            raise ConfigurationError("Static prefix must not contain path separators")

    @property
    def known_extensions(self) -> FrozenSet[str]:
        """Extensions kept verbatim in output names; ``--types`` adds to them."""
        return KNOWN_IMAGE_EXTENSIONS | self.extra_extensions

    @property
    def log_path(self) -> Path:
        return self.output_dir / self.log_file_name

    @property
    def url_list_path(self) -> Path:
        return self.output_dir / self.url_list_name
