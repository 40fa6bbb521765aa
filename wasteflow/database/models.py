from dataclasses import dataclass
from datetime import datetime


@dataclass
class JobRecord:
    """Represents a row from the ingest_jobs table."""

    id: int
    batch_id: str
    status: str
    attempts: int
    error_message: str | None = None
    locked_at: datetime | None = None
    heartbeat_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def lease(self) -> "JobLease":
        """Ownership token of a claimed job.

        Raises:
            ValueError: if the job was not claimed (no lock time).
        """
        if self.locked_at is None:
            raise ValueError(f"Job {self.id} holds no lease")
        return JobLease(job_id=self.id, locked_at=self.locked_at)


@dataclass(frozen=True)
class JobLease:
    """A claimed job and the lock time its claim wrote.

    Once the reaper releases the job, or another worker claims it again, the
    lock time no longer matches and updates made under this lease match no row.
    """

    job_id: int
    locked_at: datetime


@dataclass
class BatchRecord:
    """Represents a row from the batches table."""

    id: str
    scope: str
    status: str
    source_filename: str | None = None
    source_file_ref: str | None = None
    rows_in: int = 0
    rows_ok: int = 0
    rows_warn: int = 0
    rows_err: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ReapedJob:
    """A processing job whose lease expired, as left by the reaper."""

    job_id: int
    batch_id: str
    status: str
    attempts: int
