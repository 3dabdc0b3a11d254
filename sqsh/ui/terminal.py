import sys
from typing import Optional, Sequence, TextIO

from sqsh.core.batch_orchestrator import BatchReporter
from sqsh.core.config import QualityTier, estimate_compressed_size
from sqsh.core.file_classifier import FileDescriptor, supported_formats
from sqsh.core.records import BatchFileRecord, FileStatus
from sqsh.services.statistics import BatchSummary
from sqsh.utils.format import format_duration, format_size


QUALITY_OPTIONS = (
    (QualityTier.HIGH, "High", "Minimal compression, best quality"),
    (QualityTier.MEDIUM, "Medium", "Balanced compression and quality"),
    (QualityTier.LOW, "Low", "Maximum compression, smaller file size"),
    (QualityTier.CUSTOM, "Custom", "Set encoder values yourself"),
)

RULE_WIDTH = 60
THANK_YOU = 'Thank you for using Sqsh. Just type "sqsh" next time to compress any file.'


class TerminalRenderer(BatchReporter):
    """Plain-text presentation of a session, written to a stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._progress_open = False

    def _write(self, text: str = "") -> None:
        if self._progress_open:
            self.stream.write("\n")
            self._progress_open = False
        self.stream.write(text + "\n")
        self.stream.flush()

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    def welcome(self) -> None:
        self._write("Sqsh")
        self._write("Fast media compression for your terminal")
        self._write(f"Supported formats: {supported_formats()}")
        self._write()

    def selected_files(self, descriptors: Sequence[FileDescriptor]) -> None:
        total = sum(d.size for d in descriptors)
        self._write(f"Selected {len(descriptors)} file(s), {format_size(total)} total:")
        for descriptor in descriptors:
            self._write(f"  {descriptor.name} ({descriptor.category.value}, {format_size(descriptor.size)})")
        self._write()

    def quality_options(self, descriptors: Sequence[FileDescriptor]) -> None:
        """List quality tiers with the estimated output size of the selection."""
        self._write("Compression quality:")
        for number, (tier, label, description) in enumerate(QUALITY_OPTIONS, start=1):
            line = f"  {number}. {label} - {description}"
            if tier is not QualityTier.CUSTOM:
                estimate = sum(estimate_compressed_size(d.size, tier, d.category) for d in descriptors)
                line += f" (~{format_size(estimate)})"
            self._write(line)

    # ------------------------------------------------------------------
    # BatchReporter
    # ------------------------------------------------------------------

    def file_started(self, index: int, total: int, record: BatchFileRecord) -> None:
        self._write(f"[{index + 1}/{total}] Processing: {record.descriptor.name} ({format_size(record.descriptor.size)})")

    def file_progress(self, index: int, total: int, record: BatchFileRecord) -> None:
        self.stream.write(f"\r  Compressing {record.descriptor.name}... {record.progress:.0f}%")
        self.stream.flush()
        self._progress_open = True

    def file_finished(self, index: int, total: int, record: BatchFileRecord) -> None:
        if record.status is FileStatus.ERROR:
            self._write(f"  ✗ Error processing {record.descriptor.name}: {record.error}")
            return

        result = record.result
        if result is None:
            return
        if result.already_optimized:
            self._write(f"  ⚠️  Already optimized, original kept: {format_size(result.input_size)}")
            return

        self._write(
            f"  ✓ {format_size(result.input_size)} → {format_size(result.output_size)} "
            f"(saved {result.saved_percentage:.0f}%) in {format_duration(result.duration)}"
        )
        if result.input_file_removed:
            self._write(f"  Removed original: {result.input_path}")

    def batch_finished(self, records: Sequence[BatchFileRecord], summary: BatchSummary) -> None:
        if len(records) == 1 and records[0].status is FileStatus.COMPLETED:
            self.single_result(records[0])
        else:
            self.batch_summary(summary)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def single_result(self, record: BatchFileRecord) -> None:
        result = record.result
        self._write()
        if result.already_optimized:
            self._write("⚠️  File is already optimized; the original was kept")
        else:
            self._write("✓ Compressed successfully")
        self._write("=" * RULE_WIDTH)
        self._write(
            f"Size: {format_size(result.input_size)} → {format_size(result.output_size)} "
            f"(saved {result.saved_percentage:.0f}%)"
        )
        self._write(f"Time: {format_duration(result.duration)}")
        self._write(f"Output: {result.output_path}")
        self._write("=" * RULE_WIDTH)

    def batch_summary(self, summary: BatchSummary) -> None:
        self._write()
        self._write("=" * RULE_WIDTH)
        self._write("Batch Summary")
        self._write("=" * RULE_WIDTH)
        self._write(f"Files: {summary.total_files}")
        self._write(f"  Compressed: {summary.succeeded}")
        self._write(f"  Already optimal: {summary.already_optimal}")
        self._write(f"  Failed: {summary.failed}")
        if summary.skipped:
            self._write(f"  Skipped: {summary.skipped}")
        self._write(
            f"Size: {format_size(summary.total_input_bytes)} → {format_size(summary.total_output_bytes)} "
            f"(saved {format_size(summary.total_saved_bytes)}, {summary.total_saved_percentage:.1f}%)"
        )
        self._write(f"Time: {format_duration(summary.elapsed)}")
        self._write("=" * RULE_WIDTH)

    def error(self, message: str, detail: str = "") -> None:
        self._write()
        self._write("=" * RULE_WIDTH)
        self._write(f"✗ {message}")
        if detail:
            for line in detail.splitlines():
                self._write(f"  {line}")
        self._write("=" * RULE_WIDTH)

    def info(self, message: str) -> None:
        self._write(message)

    def exit_warning(self) -> None:
        self._write()
        self._write("Press Ctrl+C again to exit")

    def goodbye(self) -> None:
        self._write()
        self._write(THANK_YOU)
