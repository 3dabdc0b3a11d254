import time
from typing import Callable, List, Optional, Sequence, Tuple

from sqsh.core.config import CompressionSettings, ParameterValidator
from sqsh.core.errors import BatchValidationError, SqshError
from sqsh.core.file_classifier import FileDescriptor
from sqsh.core.records import BatchFileRecord, BatchState, FileStatus
from sqsh.services.statistics import BatchSummary, aggregate
from sqsh.utils.format import format_size
from sqsh.utils.logger import get_logger


# ============================================================================
# Batch Reporter
# ============================================================================


class BatchReporter:
    """Receives batch events. Subclass and override what you need to display."""

    def file_started(self, index: int, total: int, record: BatchFileRecord) -> None:
        pass

    def file_progress(self, index: int, total: int, record: BatchFileRecord) -> None:
        pass

    def file_finished(self, index: int, total: int, record: BatchFileRecord) -> None:
        pass

    def batch_finished(self, records: Sequence[BatchFileRecord], summary: BatchSummary) -> None:
        pass


# ============================================================================
# Batch Orchestrator
# ============================================================================


class BatchOrchestrator:
    """
    Runs a batch of files through the compression service, one at a time.

    Batch states: collecting-input -> configuring -> compressing -> done.
    A file's failure is recorded on its record and the batch moves on; only
    validation failures raised before the first file starts leave this class.
    """

    def __init__(self, service, reporter: Optional[BatchReporter] = None, clock: Callable[[], float] = time.time):
        """
        Args:
            service: Object with ``compress(descriptor, settings, on_progress)``
            reporter: Receives per-file and batch events
            clock: Wall-clock source for elapsed time
        """
        self.service = service
        self.reporter = reporter or BatchReporter()
        self.clock = clock
        self.logger = get_logger()
        self.state = BatchState.COLLECTING_INPUT
        self.settings: Optional[CompressionSettings] = None
        self.started_at: Optional[float] = None
        self.summary: Optional[BatchSummary] = None
        self._records: List[BatchFileRecord] = []

    @property
    def records(self) -> Tuple[BatchFileRecord, ...]:
        return tuple(self._records)

    def select_files(self, descriptors: Sequence[FileDescriptor]) -> Tuple[BatchFileRecord, ...]:
        """
        Finalize the file selection; every file starts pending.

        Raises:
            BatchValidationError: If the selection is empty or lists a path twice
        """
        if self.state not in (BatchState.COLLECTING_INPUT, BatchState.CONFIGURING):
            raise RuntimeError(f"Cannot select files while batch is {self.state.value}")
        if not descriptors:
            raise BatchValidationError("No files selected")

        seen = set()
        for descriptor in descriptors:
            if descriptor.path in seen:
                raise BatchValidationError(f"File selected twice: {descriptor.path}")
            seen.add(descriptor.path)

        self._records = [BatchFileRecord(descriptor=d) for d in descriptors]
        self.state = BatchState.CONFIGURING
        self.logger.debug(f"Selected {len(self._records)} file(s)")
        return self.records

    def skip(self, index: int) -> None:
        """Exclude a file from the run. Only allowed before the run starts."""
        if self.state is not BatchState.CONFIGURING:
            raise RuntimeError(f"Cannot skip files while batch is {self.state.value}")
        self._records[index].status = FileStatus.SKIPPED

    def run(self, settings: CompressionSettings) -> BatchSummary:
        """
        Validate the batch, then compress every file in list order.

        Raises:
            BatchValidationError: Mixed categories or nothing left to compress
            InvalidTargetSize: Target size not smaller than every input
            InvalidOutputFormat: Output format doesn't fit the batch category
            InvalidDestination: Output folder is not an existing directory
        """
        if self.state is not BatchState.CONFIGURING:
            raise RuntimeError(f"Cannot start a batch while it is {self.state.value}")

        pending = [r for r in self._records if r.status is not FileStatus.SKIPPED]
        ParameterValidator.validate_batch([r.descriptor for r in pending], settings)

        self.settings = settings
        self.state = BatchState.COMPRESSING
        self.started_at = self.clock()
        total = len(self._records)

        for index, record in enumerate(self._records):
            if record.status is FileStatus.SKIPPED:
                continue
            self._process_file(index, total, record, settings)

        self.state = BatchState.DONE
        self.summary = aggregate(self._records, self.started_at, self.clock())
        self.logger.notice(
            f"Batch done: {self.summary.succeeded} compressed, {self.summary.already_optimal} already optimal, "
            f"{self.summary.failed} failed, {format_size(self.summary.total_saved_bytes)} saved"
        )
        self.reporter.batch_finished(self.records, self.summary)
        return self.summary

    def reset(self) -> None:
        """Forget the previous batch and start collecting input again."""
        if self.state is BatchState.COMPRESSING:
            raise RuntimeError("Cannot reset a batch while it is compressing")
        self._records = []
        self.settings = None
        self.started_at = None
        self.summary = None
        self.state = BatchState.COLLECTING_INPUT

    def _process_file(self, index: int, total: int, record: BatchFileRecord, settings: CompressionSettings) -> None:
        record.status = FileStatus.COMPRESSING
        record.progress = 0.0
        self.logger.info(f"[{index + 1}/{total}] Processing: {record.descriptor.name}")
        self.reporter.file_started(index, total, record)

        def on_progress(percentage: float) -> None:
            percentage = max(0.0, min(100.0, float(percentage)))
            if percentage > record.progress:
                record.progress = percentage
                self.reporter.file_progress(index, total, record)

        try:
            result = self.service.compress(record.descriptor, settings, on_progress)
        except SqshError as error:
            self._record_failure(record, error)
        except Exception as error:
            self.logger.error(f"Unexpected error compressing {record.descriptor.path}: {error}", exc_info=True)
            self._record_failure(record, error)
        else:
            record.result = result
            record.progress = 100.0
            record.status = FileStatus.COMPLETED

        self.reporter.file_finished(index, total, record)

    def _record_failure(self, record: BatchFileRecord, error: Exception) -> None:
        record.status = FileStatus.ERROR
        record.result = None
        record.error = str(error) or type(error).__name__
        self.logger.error(f"Error processing {record.descriptor.path}: {record.error}")
