"""Batch lifecycle.

    pending -> uploading -> pending -> processing -> completed
                                               \\-> completed_with_warnings
                                               \\-> failed
    processing -> pending    (retry, lease expiry)
"""

from enum import Enum

from wasteflow.batches.exceptions import InvalidTransitionError


class BatchStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {BatchStatus.COMPLETED, BatchStatus.COMPLETED_WITH_WARNINGS, BatchStatus.FAILED}
)

ALLOWED_TRANSITIONS: dict[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.PENDING: frozenset({BatchStatus.UPLOADING, BatchStatus.PROCESSING, BatchStatus.FAILED}),
    BatchStatus.UPLOADING: frozenset({BatchStatus.PENDING, BatchStatus.FAILED}),
    BatchStatus.PROCESSING: frozenset(
        {
            BatchStatus.COMPLETED,
            BatchStatus.COMPLETED_WITH_WARNINGS,
            BatchStatus.FAILED,
            BatchStatus.PENDING,
        }
    ),
    BatchStatus.COMPLETED: frozenset(),
    BatchStatus.COMPLETED_WITH_WARNINGS: frozenset(),
    BatchStatus.FAILED: frozenset(),
}


def can_transition(current: BatchStatus | str, target: BatchStatus | str) -> bool:
    return BatchStatus(target) in ALLOWED_TRANSITIONS[BatchStatus(current)]


def ensure_transition(current: BatchStatus | str, target: BatchStatus | str) -> None:
    """Raises InvalidTransitionError when the lifecycle forbids the move."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Batch cannot move from '{BatchStatus(current).value}' to '{BatchStatus(target).value}'"
        )


def sources_of(target: BatchStatus) -> tuple[BatchStatus, ...]:
    """Statuses from which ``target`` is reachable, in declaration order."""
    return tuple(status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets)


def finished_status(rows_warn: int, rows_err: int = 0) -> BatchStatus:
    """Skipped, invalid and rejected rows all downgrade the batch to warnings."""
    return BatchStatus.COMPLETED_WITH_WARNINGS if rows_warn + rows_err > 0 else BatchStatus.COMPLETED
