from collections.abc import Callable

from wasteflow.batches.exceptions import BatchError
from wasteflow.config.settings import Settings
from wasteflow.database.models import JobLease, JobRecord
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.job_repository import JobRepository
from wasteflow.logging.logger import Log
from wasteflow.processor.exceptions import LeaseLostError
from wasteflow.processor.processor import Processor
from wasteflow.worker.lease import LeaseKeeper


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic.

    Every job and batch update is made under the job's lease. Once the lease
    is gone the job belongs to whoever claimed it next, and this runner
    leaves it alone.
    """

    def __init__(
        self,
        processor: Processor,
        job_repo: JobRepository,
        batch_repo: BatchRepository,
        settings: Settings,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._batch_repo = batch_repo
        self._settings = settings

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(f"Running job {job.id} for batch {job.batch_id} (attempt {job.attempts + 1})")
        lease = job.lease()
        try:
            with LeaseKeeper(self._job_repo, lease, self._settings.lease_heartbeat_seconds) as keeper:
                result = self._processor.process(job.batch_id, job.id, lease=lease, lease_lost=keeper.lost)
            if self._job_repo.mark_done(lease):
                Log.info(f"Job {job.id} completed successfully ({result.status})")
            else:
                Log.warning(f"Job {job.id} finished after losing its lease, not marked done")
        except LeaseLostError as exc:
            Log.warning(str(exc))
        except Exception as exc:
            Log.exception(f"Job {job.id} failed on batch {job.batch_id}")
            self._handle_failure(job, lease, exc)

    def _handle_failure(self, job: JobRecord, lease: JobLease, exc: Exception) -> None:
        """Mark job and batch failed at max attempts, otherwise back to pending.

        The batch goes first: its update is conditioned on the job still being
        processing under this lease.
        """
        message = str(exc) or exc.__class__.__name__
        if job.attempts + 1 >= self._settings.max_job_attempts:
            self._update_batch(job, lease, self._batch_repo.mark_failed, message)
            if not self._job_repo.mark_failed(lease, message):
                Log.warning(f"Job {job.id} lost its lease, failure not recorded")
                return
            Log.error(f"Job {job.id} permanently failed after {job.attempts + 1} attempts")
        else:
            self._update_batch(job, lease, self._batch_repo.requeue, message)
            if not self._job_repo.increment_attempts(lease, message):
                Log.warning(f"Job {job.id} lost its lease, retry left to its new owner")
                return
            Log.warning(f"Job {job.id} will be retried (attempt {job.attempts + 1})")

    def _update_batch(
        self,
        job: JobRecord,
        lease: JobLease,
        update: Callable[[str, str, JobLease], None],
        message: str,
    ) -> None:
        try:
            update(job.batch_id, message, lease)
        except BatchError as exc:
            Log.warning(f"Batch {job.batch_id} status not updated: {exc}")
