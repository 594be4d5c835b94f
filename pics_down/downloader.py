"""Confirm, fetch, persist and log a batch of image downloads."""

from __future__ import annotations

import logging
import os
import threading
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from .config import DownloadConfig
from .errors import FetchError
from .fetch import Fetcher
from .models import BatchSummary, DownloadTask, TaskFailure, TaskOutcome, TaskState
from .naming import name_for
from .runlog import RunLog

logger = logging.getLogger("pics_down")

TaskCallback = Callable[[TaskOutcome], None]


def build_tasks(urls: Sequence[str], config: DownloadConfig) -> List[DownloadTask]:
    """Assign 1-based ordinals and filenames before anything is dispatched."""
    return [
        DownloadTask(
            ordinal=ordinal,
            url=url,
            filename=name_for(
                ordinal,
                url,
                config.prefix_len,
                config.static_prefix,
                config.known_extensions,
            ),
        )
        for ordinal, url in enumerate(urls, start=1)
    ]


def write_url_list(path: Path, batches: Mapping[str, Iterable[str]]) -> None:
    """Persist the candidate URLs, one per line, grouped by batch."""
    lines = [url for urls in batches.values() for url in urls]
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def write_atomically(destination: Path, content: bytes) -> None:
    """Write ``content`` next to ``destination`` and move it into place.

    The temporary file is created with ``0o666`` so the umask applies as for
    any regular write, and it is removed on every failure path, so a failed
    task never leaves a partial image behind.
    """
    tmp_path = destination.with_name(f".{destination.name}.{uuid.uuid4().hex[:8]}.part")
    flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
    fd = os.open(tmp_path, flags, 0o666)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        os.replace(tmp_path, destination)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class Downloader:
    """Runs batches of ``DownloadTask`` through a bounded worker pool."""

    def __init__(
        self,
        config: DownloadConfig,
        fetcher: Fetcher,
        run_log: RunLog,
        on_task_done: Optional[TaskCallback] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.run_log = run_log
        self.on_task_done = on_task_done

    def process(self, task: DownloadTask) -> TaskOutcome:
        """Fetch and persist one task; fetch and write errors become ``Failed``."""
        destination = self.config.output_dir / task.filename
        self.run_log.append(f"{TaskState.FETCHING.value}: {task.url} -> {task.filename}")
        try:
            result = self.fetcher.fetch_image(task.url)
            write_atomically(destination, result.content)
        except FetchError as exc:
            outcome = TaskOutcome(task, TaskState.FAILED, reason=exc.reason)
        except OSError as exc:
            outcome = TaskOutcome(task, TaskState.FAILED, reason=exc.strerror or str(exc))
        else:
            outcome = TaskOutcome(task, TaskState.WRITTEN, size=len(result.content))

        if outcome.state is TaskState.WRITTEN:
            self.run_log.append(f"{outcome.state.value}: {task.filename} ({outcome.size} bytes)")
        else:
            self.run_log.append(
                f"{outcome.state.value}: {task.url} ({outcome.reason})", logging.WARNING
            )
        if self.on_task_done is not None:
            self.on_task_done(outcome)
        return outcome

    def run_batch(
        self,
        label: str,
        tasks: Sequence[DownloadTask],
        confirmed: bool,
        cancel: Optional[threading.Event] = None,
    ) -> BatchSummary:
        """Download every task of a confirmed batch.

        At most ``config.workers`` tasks are in flight. Setting ``cancel`` (or
        an interrupt while the batch runs) stops new dispatches; tasks
        already running are allowed to finish and the partial summary is
        still returned.
        """
        summary = BatchSummary(label=label, total=len(tasks))
        if not confirmed:
            summary.declined = True
            self.run_log.append(f"Download of {len(tasks)} {label} images declined")
            return summary

        cancel = cancel or threading.Event()
        self.run_log.append(f"Downloading {len(tasks)} {label} images")
        submitted: List[Future] = []
        with ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="ImageWorker"
        ) as executor:
            try:
                for task in tasks:
                    running = [future for future in submitted if not future.done()]
                    if len(running) >= self.config.workers:
                        wait(running, return_when=FIRST_COMPLETED)
                    if cancel.is_set():
                        break
                    submitted.append(executor.submit(self.process, task))
                wait(submitted)
            except KeyboardInterrupt:
                logger.warning("Interrupted, waiting for running downloads to finish")
                cancel.set()
                wait(submitted)

        for future in submitted:
            outcome = future.result()
            if outcome.state is TaskState.WRITTEN:
                summary.succeeded += 1
                summary.written.append(outcome.task.filename)
            else:
                summary.failed.append(TaskFailure(outcome.task.url, outcome.reason or "unknown"))
        summary.skipped = len(tasks) - len(submitted)
        summary.cancelled = cancel.is_set()
        if summary.cancelled:
            self.run_log.append(f"Cancelled: {summary.skipped} {label} images not dispatched")
        self.run_log.append(summary.summary_line())
        return summary
