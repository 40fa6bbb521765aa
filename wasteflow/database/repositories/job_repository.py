from typing import Any

import psycopg
from psycopg.rows import dict_row

from wasteflow.database.connection import get_connection
from wasteflow.database.models import JobLease, JobRecord, ReapedJob

LEASE_EXPIRED_MESSAGE = "Lease expired: worker stopped heart-beating"


class JobRepository:
    """Database operations for the ingest_jobs table.

    Updates made on behalf of a running job take its JobLease and only match
    while the job is still processing under that same claim.
    """

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the next pending job using SELECT FOR UPDATE SKIP LOCKED."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, batch_id, status, attempts
                FROM ingest_jobs
                WHERE status = 'pending'
                  AND attempts < %s
                ORDER BY created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._max_attempts,),
            )
            row = cur.fetchone()

            if row is None:
                conn.rollback()
                return None

            cur.execute(
                """
                UPDATE ingest_jobs
                SET status = 'processing', locked_at = NOW(), heartbeat_at = NOW(),
                    updated_at = NOW()
                WHERE id = %s
                RETURNING locked_at
                """,
                (row["id"],),
            )
            claimed = cur.fetchone()
        conn.commit()

        if claimed is None:
            raise RuntimeError(f"Job {row['id']} vanished while being claimed")

        return JobRecord(
            id=row["id"],
            batch_id=str(row["batch_id"]),
            status="processing",
            attempts=row["attempts"],
            locked_at=claimed["locked_at"],
        )

    def enqueue(self, batch_id: str, conn: psycopg.Connection[Any] | None = None) -> int:
        """Insert a pending job for a batch. The caller commits when passing conn."""
        if conn is not None:
            return self._insert_job(conn, batch_id)
        with get_connection() as own_conn:
            job_id = self._insert_job(own_conn, batch_id)
            own_conn.commit()
        return job_id

    def _insert_job(self, conn: psycopg.Connection[Any], batch_id: str) -> int:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO ingest_jobs (batch_id, status, attempts)
                VALUES (%s, 'pending', 0)
                RETURNING id
                """,
                (batch_id,),
            )
            row = cur.fetchone()
        if row is None:
            raise RuntimeError(f"No job id returned for batch {batch_id}")
        return int(row[0])

    def heartbeat(self, lease: JobLease) -> bool:
        """Refresh the lease of a processing job. False if the job lost it."""
        return self._update_leased(
            lease,
            """
            UPDATE ingest_jobs
            SET heartbeat_at = NOW()
            WHERE id = %s AND status = 'processing' AND locked_at = %s
            """,
        )

    def reap_expired(self, conn: psycopg.Connection[Any], lease_timeout_seconds: int) -> list[ReapedJob]:
        """Release processing jobs whose heartbeat is older than the lease.

        Each counts as a failed attempt: back to pending, or failed once the
        attempts are exhausted.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                UPDATE ingest_jobs
                SET attempts = attempts + 1,
                    status = CASE WHEN attempts + 1 >= %s THEN 'failed' ELSE 'pending' END,
                    error_message = %s,
                    locked_at = NULL,
                    heartbeat_at = NULL,
                    updated_at = NOW()
                WHERE status = 'processing'
                  AND COALESCE(heartbeat_at, locked_at) < NOW() - %s::double precision * INTERVAL '1 second'
                RETURNING id, batch_id, status, attempts
                """,
                (self._max_attempts, LEASE_EXPIRED_MESSAGE, lease_timeout_seconds),
            )
            rows = cur.fetchall()
        conn.commit()

        return [
            ReapedJob(
                job_id=row["id"],
                batch_id=str(row["batch_id"]),
                status=row["status"],
                attempts=row["attempts"],
            )
            for row in rows
        ]

    def mark_done(self, lease: JobLease) -> bool:
        """Mark a job as done. False if the job is no longer held under this lease."""
        return self._update_leased(
            lease,
            """
            UPDATE ingest_jobs
            SET status = 'done', locked_at = NULL, updated_at = NOW()
            WHERE id = %s AND status = 'processing' AND locked_at = %s
            """,
        )

    def mark_failed(self, lease: JobLease, error: str) -> bool:
        """Mark a job as permanently failed."""
        return self._update_leased(
            lease,
            """
            UPDATE ingest_jobs
            SET status = 'failed', attempts = attempts + 1, error_message = %s,
                locked_at = NULL, updated_at = NOW()
            WHERE id = %s AND status = 'processing' AND locked_at = %s
            """,
            (error,),
        )

    def increment_attempts(self, lease: JobLease, error: str | None = None) -> bool:
        """Increment attempt count and return job to pending."""
        return self._update_leased(
            lease,
            """
            UPDATE ingest_jobs
            SET attempts = attempts + 1, status = 'pending', error_message = %s,
                locked_at = NULL, heartbeat_at = NULL, updated_at = NOW()
            WHERE id = %s AND status = 'processing' AND locked_at = %s
            """,
            (error,),
        )

    def _update_leased(self, lease: JobLease, query: str, params: tuple[Any, ...] = ()) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (*params, lease.job_id, lease.locked_at))
                updated = cur.rowcount > 0
            conn.commit()
        return updated

    def find_by_id(self, job_id: int) -> JobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, batch_id, status, attempts, error_message,
                           locked_at, heartbeat_at, created_at, updated_at
                    FROM ingest_jobs
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return JobRecord(
            id=row["id"],
            batch_id=str(row["batch_id"]),
            status=row["status"],
            attempts=row["attempts"],
            error_message=row["error_message"],
            locked_at=row["locked_at"],
            heartbeat_at=row["heartbeat_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
