from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqsh.core.compression_service import CompressionResult
from sqsh.core.file_classifier import FileDescriptor


class FileStatus(str, Enum):
    """Per-file lifecycle: pending -> compressing -> completed | error. Skipped is set before a run."""

    PENDING = "pending"
    COMPRESSING = "compressing"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"


class BatchState(str, Enum):
    COLLECTING_INPUT = "collecting-input"
    CONFIGURING = "configuring"
    COMPRESSING = "compressing"
    DONE = "done"


TERMINAL_STATUSES = frozenset({FileStatus.COMPLETED, FileStatus.ERROR, FileStatus.SKIPPED})


@dataclass
class BatchFileRecord:
    """One file's journey through a batch. Only the orchestrator mutates it."""

    descriptor: FileDescriptor
    status: FileStatus = FileStatus.PENDING
    progress: float = 0.0
    result: Optional[CompressionResult] = None
    error: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def output_size(self) -> int:
        """Size counted in totals: the result's for completed files, else unchanged."""
        if self.status is FileStatus.COMPLETED and self.result is not None:
            return self.result.output_size
        return self.descriptor.size
