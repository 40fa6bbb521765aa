import threading
from types import TracebackType

from wasteflow.batches.exceptions import BatchError
from wasteflow.config.settings import Settings
from wasteflow.database.connection import get_connection
from wasteflow.database.models import JobLease
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.job_repository import LEASE_EXPIRED_MESSAGE, JobRepository
from wasteflow.logging.logger import Log


class LeaseKeeper:
    """Refreshes a job's heartbeat from a daemon thread while it runs.

    Use as a context manager around the job's processing. When a heartbeat
    finds the lease gone, ``lost`` is set and the keeper stops.
    """

    def __init__(self, job_repo: JobRepository, lease: JobLease, interval: float) -> None:
        self._job_repo = job_repo
        self._lease = lease
        self._job_id = lease.job_id
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.lost = threading.Event()

    def __enter__(self) -> "LeaseKeeper":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._heartbeat_loop,
            name=f"lease-{self._job_id}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=5.0)
        self._thread = None

    def _heartbeat_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            try:
                if not self._job_repo.heartbeat(self._lease):
                    Log.warning(f"Job {self._job_id} lost its lease")
                    self.lost.set()
                    return
            except Exception as exc:
                Log.warning(f"Heartbeat failed for job {self._job_id}, will retry: {exc}")


class LeaseReaper:
    """Returns jobs abandoned by crashed workers to the queue."""

    def __init__(
        self,
        job_repo: JobRepository,
        batch_repo: BatchRepository,
        settings: Settings,
    ) -> None:
        self._job_repo = job_repo
        self._batch_repo = batch_repo
        self._settings = settings

    def reap(self) -> int:
        """Release expired leases; returns how many jobs were released."""
        try:
            with get_connection() as conn:
                reaped = self._job_repo.reap_expired(conn, self._settings.lease_timeout_seconds)
        except Exception as exc:
            Log.warning(f"Lease reaper database error, will retry: {exc}")
            return 0

        for job in reaped:
            try:
                if job.status == "failed":
                    self._batch_repo.mark_failed(job.batch_id, LEASE_EXPIRED_MESSAGE)
                    Log.error(
                        f"Job {job.job_id} lease expired after {job.attempts} attempts, "
                        f"batch {job.batch_id} failed"
                    )
                else:
                    self._batch_repo.requeue(job.batch_id, LEASE_EXPIRED_MESSAGE)
                    Log.warning(f"Job {job.job_id} lease expired, batch {job.batch_id} requeued")
            except BatchError as exc:
                Log.warning(f"Batch {job.batch_id} not updated after lease expiry: {exc}")
        return len(reaped)
