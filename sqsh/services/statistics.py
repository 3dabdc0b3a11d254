import time
from dataclasses import dataclass
from typing import Optional, Sequence

from sqsh.core.records import BatchFileRecord, FileStatus


# ============================================================================
# Batch Summary
# ============================================================================


@dataclass(frozen=True)
class BatchSummary:
    """Batch-level totals for presentation."""

    total_files: int
    total_input_bytes: int
    total_output_bytes: int
    total_saved_bytes: int
    total_saved_percentage: float
    succeeded: int
    already_optimal: int
    failed: int
    skipped: int
    elapsed: float


# ============================================================================
# Result Aggregator
# ============================================================================


def aggregate(
    records: Sequence[BatchFileRecord],
    started_at: float,
    now: Optional[float] = None,
) -> BatchSummary:
    """
    Fold per-file records into batch totals.

    Files that errored, were skipped or never ran count at their original
    size, i.e. as unchanged.

    Args:
        records: Records of the batch, in any state
        started_at: Wall-clock timestamp the batch started at
        now: Timestamp of the aggregation; defaults to the current time

    Returns:
        BatchSummary
    """
    if now is None:
        now = time.time()

    total_input = 0
    total_output = 0
    succeeded = already_optimal = failed = skipped = 0

    for record in records:
        total_input += record.descriptor.size
        total_output += record.output_size

        if record.status is FileStatus.COMPLETED and record.result is not None:
            if record.result.already_optimized:
                already_optimal += 1
            else:
                succeeded += 1
        elif record.status is FileStatus.ERROR:
            failed += 1
        elif record.status is FileStatus.SKIPPED:
            skipped += 1

    saved = total_input - total_output
    percentage = (saved / total_input * 100) if total_input > 0 else 0.0

    return BatchSummary(
        total_files=len(records),
        total_input_bytes=total_input,
        total_output_bytes=total_output,
        total_saved_bytes=saved,
        total_saved_percentage=percentage,
        succeeded=succeeded,
        already_optimal=already_optimal,
        failed=failed,
        skipped=skipped,
        elapsed=max(0.0, now - started_at),
    )
