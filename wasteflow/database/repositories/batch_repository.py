import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from wasteflow.batches.exceptions import StaleBatchStateError
from wasteflow.batches.state import BatchStatus, sources_of
from wasteflow.database.connection import get_connection
from wasteflow.database.models import BatchRecord, JobLease
from wasteflow.processor.exceptions import BatchNotFoundError
from wasteflow.processor.models import IngestCounters


def _statuses(target: BatchStatus) -> list[str]:
    return [status.value for status in sources_of(target)]


# Appended to a transition run on behalf of a job: the job must still be
# processing under the same claim.
_LEASE_CLAUSE = """
  AND EXISTS (
      SELECT 1 FROM ingest_jobs
      WHERE ingest_jobs.id = %s
        AND ingest_jobs.status = 'processing'
        AND ingest_jobs.locked_at = %s
  )
"""


class BatchRepository:
    """Database operations for the batches table.

    Every status change is a conditional UPDATE on the statuses the target is
    reachable from; a change that matches no row raises StaleBatchStateError.
    Transitions made by a worker also take its JobLease, so a worker whose
    job was released cannot overwrite the batch of the job's next owner.
    """

    def create(self, scope: str, source_filename: str | None) -> BatchRecord:
        """Insert a new pending batch."""
        batch_id = str(uuid.uuid4())
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO batches (id, scope, status, source_filename)
                VALUES (%s, %s, 'pending', %s)
                """,
                (batch_id, scope, source_filename),
            )
            conn.commit()
        return BatchRecord(
            id=batch_id,
            scope=scope,
            status=BatchStatus.PENDING.value,
            source_filename=source_filename,
        )

    def find_by_id(self, batch_id: str) -> BatchRecord:
        """Find a batch by ID.

        Raises:
            BatchNotFoundError: if no batch with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, scope, status, source_filename, source_file_ref,
                           rows_in, rows_ok, rows_warn, rows_err,
                           started_at, finished_at, error_message,
                           created_at, updated_at
                    FROM batches
                    WHERE id = %s
                    """,
                    (batch_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")

        return BatchRecord(
            id=str(row["id"]),
            scope=row["scope"],
            status=row["status"],
            source_filename=row["source_filename"],
            source_file_ref=row["source_file_ref"],
            rows_in=row["rows_in"],
            rows_ok=row["rows_ok"],
            rows_warn=row["rows_warn"],
            rows_err=row["rows_err"],
            started_at=row["started_at"],
            finished_at=row["finished_at"],
            error_message=row["error_message"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def mark_uploading(self, batch_id: str, source_file_ref: str) -> None:
        """pending -> uploading, recording where the file will be stored."""
        with get_connection() as conn:
            self._transition(
                conn,
                batch_id,
                BatchStatus.UPLOADING,
                """
                UPDATE batches
                SET status = %s, source_file_ref = %s, updated_at = NOW()
                WHERE id = %s AND status = ANY(%s)
                """,
                (BatchStatus.UPLOADING.value, source_file_ref, batch_id, _statuses(BatchStatus.UPLOADING)),
            )
            conn.commit()

    def mark_upload_confirmed(self, batch_id: str, conn: psycopg.Connection[Any]) -> None:
        """uploading -> pending. Runs in the caller's transaction."""
        self._transition(
            conn,
            batch_id,
            BatchStatus.PENDING,
            """
            UPDATE batches
            SET status = %s, updated_at = NOW()
            WHERE id = %s AND status = %s
            """,
            (BatchStatus.PENDING.value, batch_id, BatchStatus.UPLOADING.value),
        )

    def mark_processing(self, batch_id: str, lease: JobLease | None = None) -> None:
        """pending -> processing. Resets counters and records the start time."""
        with get_connection() as conn:
            self._transition(
                conn,
                batch_id,
                BatchStatus.PROCESSING,
                """
                UPDATE batches
                SET status = %s, started_at = NOW(), finished_at = NULL,
                    error_message = NULL, rows_in = 0, rows_ok = 0,
                    rows_warn = 0, rows_err = 0, updated_at = NOW()
                WHERE id = %s AND status = ANY(%s)
                """,
                (BatchStatus.PROCESSING.value, batch_id, _statuses(BatchStatus.PROCESSING)),
                lease,
            )
            conn.commit()

    def mark_finished(
        self,
        batch_id: str,
        status: BatchStatus,
        counters: IngestCounters,
        lease: JobLease | None = None,
    ) -> None:
        """processing -> completed / completed_with_warnings, with counters."""
        with get_connection() as conn:
            self._transition(
                conn,
                batch_id,
                status,
                """
                UPDATE batches
                SET status = %s, rows_in = %s, rows_ok = %s, rows_warn = %s,
                    rows_err = %s, finished_at = NOW(), updated_at = NOW()
                WHERE id = %s AND status = ANY(%s)
                """,
                (
                    status.value,
                    counters.rows_in,
                    counters.rows_ok,
                    counters.rows_warn,
                    counters.rows_err,
                    batch_id,
                    _statuses(status),
                ),
                lease,
            )
            conn.commit()

    def mark_failed(self, batch_id: str, error: str, lease: JobLease | None = None) -> None:
        """Any non-terminal status -> failed, keeping the error verbatim."""
        with get_connection() as conn:
            self._transition(
                conn,
                batch_id,
                BatchStatus.FAILED,
                """
                UPDATE batches
                SET status = %s, error_message = %s, finished_at = NOW(),
                    updated_at = NOW()
                WHERE id = %s AND status = ANY(%s)
                """,
                (BatchStatus.FAILED.value, error, batch_id, _statuses(BatchStatus.FAILED)),
                lease,
            )
            conn.commit()

    def requeue(self, batch_id: str, error: str, lease: JobLease | None = None) -> None:
        """processing -> pending for another attempt. The error stays visible."""
        with get_connection() as conn:
            self._transition(
                conn,
                batch_id,
                BatchStatus.PENDING,
                """
                UPDATE batches
                SET status = %s, error_message = %s, updated_at = NOW()
                WHERE id = %s AND status = %s
                """,
                (BatchStatus.PENDING.value, error, batch_id, BatchStatus.PROCESSING.value),
                lease,
            )
            conn.commit()

    def _transition(
        self,
        conn: psycopg.Connection[Any],
        batch_id: str,
        target: BatchStatus,
        query: str,
        params: tuple[Any, ...],
        lease: JobLease | None = None,
    ) -> None:
        if lease is not None:
            query += _LEASE_CLAUSE
            params = (*params, lease.job_id, lease.locked_at)
        with conn.cursor() as cur:
            cur.execute(query, params)
            if cur.rowcount == 0:
                conn.rollback()
                raise StaleBatchStateError(
                    f"Batch {batch_id} could not move to '{target.value}' from its current status"
                )
