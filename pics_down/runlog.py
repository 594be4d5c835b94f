"""Append-only, timestamped record of one invocation."""

from __future__ import annotations

import datetime as dt
import itertools
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .errors import RunLogError

LOG_FORMAT = "%(asctime)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_instances = itertools.count()


class RunLog:
    """Run log backed by a ``logging.FileHandler``.

    The handler lock keeps concurrent appends from interleaving and the
    stream is flushed after every record, so the file survives a crash of
    the caller.
    """

    def __init__(self, path: Path, logger: logging.Logger, handlers: List[logging.Handler]):
        self.path = path
        self._logger = logger
        self._handlers = handlers

    @classmethod
    def open(
        cls,
        path: Path,
        page_url: str,
        output_dir: Optional[Path] = None,
        mirror: bool = False,
        console: Optional[Console] = None,
    ) -> "RunLog":
        """Create (or truncate) the log file and write the header."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        except OSError as exc:
            raise RunLogError(f"Cannot open log file {path}: {exc}") from exc

        started = dt.datetime.now().strftime(DATE_FORMAT)
        header = f"=== Download Log {started} ===\nURL: {page_url}\n"
        if output_dir is not None:
            header += f"Output Directory: {output_dir}\n"
        try:
            file_handler.stream.write(header)
            file_handler.flush()
        except OSError as exc:
            file_handler.close()
            raise RunLogError(f"Cannot write log file {path}: {exc}") from exc
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

        handlers: List[logging.Handler] = [file_handler]
        if mirror:
            console_handler = RichHandler(console=console, show_path=False, markup=False)
            console_handler.setFormatter(logging.Formatter("%(message)s"))
            handlers.append(console_handler)

        logger = logging.getLogger(f"pics_down.runlog.{next(_instances)}")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in handlers:
            logger.addHandler(handler)
        return cls(path, logger, handlers)

    def __enter__(self) -> "RunLog":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def append(self, message: str, level: int = logging.INFO) -> None:
        """Write ``<timestamp> - <message>``; flushed before returning."""
        self._logger.log(level, message)

    def close(self) -> None:
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []
