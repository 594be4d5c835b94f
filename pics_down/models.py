"""Data models used throughout the download pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TaskState(str, Enum):
    """Lifecycle of a single download task."""

    PENDING = "Pending"
    FETCHING = "Fetching"
    WRITTEN = "Written"
    FAILED = "Failed"


@dataclass(frozen=True)
class DownloadTask:
    """An image URL paired with its ordinal and the filename derived from it."""

    ordinal: int
    url: str
    filename: str


@dataclass(frozen=True)
class TaskFailure:
    url: str
    reason: str


@dataclass(frozen=True)
class TaskOutcome:
    """Terminal state reached by a task."""

    task: DownloadTask
    state: TaskState
    reason: Optional[str] = None
    size: int = 0


@dataclass
class BatchSummary:
    """Counts for one batch of tasks."""

    label: str
    total: int
    succeeded: int = 0
    failed: List[TaskFailure] = field(default_factory=list)
    written: List[str] = field(default_factory=list)
    declined: bool = False
    cancelled: bool = False
    skipped: int = 0

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def summary_line(self) -> str:
        if self.declined:
            return f"{self.label} batch: declined ({self.total} images)"
        line = f"{self.label} batch: {self.succeeded} succeeded, {self.failed_count} failed"
        if self.skipped:
            line += f", {self.skipped} skipped"
        return line


@dataclass
class RunSummary:
    """Aggregate of every batch processed in one invocation."""

    batches: List[BatchSummary] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(batch.succeeded for batch in self.batches)

    @property
    def failed(self) -> List[TaskFailure]:
        return [failure for batch in self.batches for failure in batch.failed]

    @property
    def declined(self) -> int:
        return sum(1 for batch in self.batches if batch.declined)

    @property
    def cancelled(self) -> bool:
        return any(batch.cancelled for batch in self.batches)

    @property
    def written(self) -> List[str]:
        return [name for batch in self.batches for name in batch.written]
