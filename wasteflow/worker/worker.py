import threading

from wasteflow.config.settings import Settings
from wasteflow.database.connection import get_connection
from wasteflow.database.models import JobRecord
from wasteflow.database.repositories.job_repository import JobRepository
from wasteflow.logging.logger import Log
from wasteflow.worker.job_runner import JobRunner

# While the database is down, warn on the first failed claim and then every Nth.
DB_ERROR_LOG_EVERY = 10
MAX_IDLE_SECONDS = 60


class Worker:
    """One ingestion slot: claim a batch job, run it, wait when the queue is empty.

    Workers of a pool share one stop event, so setting it ends all of them
    after their current job.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings
        self._stop_event = stop_event if stop_event is not None else threading.Event()
        self._claim_failures = 0

    def run(self, max_jobs: int | None = None) -> int:
        """Poll until the stop event is set or the process is interrupted.

        If max_jobs is set, stop after processing that many jobs (for testing).
        Returns the number of jobs run.
        """
        Log.info("Worker started, polling for batch jobs")
        jobs_done = 0
        try:
            while not self._stop_event.is_set():
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                job = self._try_claim_job()
                if job is None:
                    self._stop_event.wait(self._idle_seconds())
                    continue
                self._job_runner.run(job)
                jobs_done += 1
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")
        Log.info(f"Worker stopped after {jobs_done} jobs")
        return jobs_done

    def _idle_seconds(self) -> float:
        """Poll interval, doubled for each consecutive failed claim."""
        interval = self._settings.job_poll_interval_seconds
        if self._claim_failures:
            interval = min(interval * 2 ** min(self._claim_failures, 6), MAX_IDLE_SECONDS)
        else:
            Log.debug("No batch jobs available, sleeping")
        return interval

    def _try_claim_job(self) -> JobRecord | None:
        try:
            with get_connection() as conn:
                job = self._job_repo.claim_next_job(conn)
        except Exception as exc:
            self._claim_failures += 1
            if self._claim_failures == 1 or self._claim_failures % DB_ERROR_LOG_EVERY == 0:
                Log.warning(
                    f"Cannot claim a job ({self._claim_failures} consecutive failures), will retry: {exc}"
                )
            return None
        if self._claim_failures:
            Log.info(f"Database reachable again after {self._claim_failures} failed claims")
            self._claim_failures = 0
        return job
