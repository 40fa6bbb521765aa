import threading

from wasteflow.config.settings import Settings
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.job_repository import JobRepository
from wasteflow.logging.logger import Log
from wasteflow.processor.processor import Processor
from wasteflow.worker.job_runner import JobRunner
from wasteflow.worker.lease import LeaseReaper
from wasteflow.worker.worker import Worker


class WorkerPool:
    """Runs independent workers in threads; the main thread reaps expired leases."""

    def __init__(
        self,
        workers: list[Worker],
        reaper: LeaseReaper,
        settings: Settings,
        stop_event: threading.Event,
    ) -> None:
        self._workers = workers
        self._reaper = reaper
        self._settings = settings
        self._stop_event = stop_event
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        for index, worker in enumerate(self._workers):
            thread = threading.Thread(target=worker.run, name=f"worker-{index}", daemon=True)
            thread.start()
            self._threads.append(thread)
        Log.info(f"Worker pool started with {len(self._threads)} workers")

    def run(self, max_reaps: int | None = None) -> None:
        """Start the workers and reap until interrupted.

        If max_reaps is set, stop after that many reaper passes (for testing).
        """
        self.start()
        reaps = 0
        try:
            while not self._stop_event.is_set():
                released = self._reaper.reap()
                if released:
                    Log.info(f"Released {released} expired job leases")
                reaps += 1
                if max_reaps is not None and reaps >= max_reaps:
                    break
                self._stop_event.wait(self._settings.lease_reap_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker pool shutting down gracefully")
        finally:
            self.stop()

    def stop(self) -> None:
        """Signal every worker and wait for running jobs to finish."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join()
        self._threads = []


def build_pool(settings: Settings, processor: Processor) -> WorkerPool:
    """One JobRunner and Worker per slot, sharing the processor and repositories."""
    stop_event = threading.Event()
    job_repo = JobRepository(settings.max_job_attempts)
    batch_repo = BatchRepository()
    workers = [
        Worker(
            job_repo,
            JobRunner(processor, job_repo, batch_repo, settings),
            settings,
            stop_event=stop_event,
        )
        for _ in range(settings.worker_concurrency)
    ]
    reaper = LeaseReaper(job_repo, batch_repo, settings)
    return WorkerPool(workers, reaper, settings, stop_event)
