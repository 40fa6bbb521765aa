from dataclasses import dataclass

from wasteflow.batches.exceptions import UploadNotFoundError
from wasteflow.batches.state import BatchStatus
from wasteflow.config.settings import Settings
from wasteflow.database.connection import get_connection
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.job_repository import JobRepository
from wasteflow.logging.logger import Log
from wasteflow.storage.base import BaseObjectStore, build_object_ref


@dataclass(frozen=True)
class UploadTicket:
    """Where the client should put the file for a new batch."""

    batch_id: str
    source_file_ref: str


class UploadService:
    """Two-phase upload: allocate a batch and reference, then confirm and enqueue."""

    def __init__(
        self,
        batch_repo: BatchRepository,
        job_repo: JobRepository,
        store: BaseObjectStore,
        settings: Settings,
    ) -> None:
        self._batch_repo = batch_repo
        self._job_repo = job_repo
        self._store = store
        self._settings = settings

    def init_upload(self, filename: str, data: bytes | None = None) -> UploadTicket:
        batch = self._batch_repo.create(self._settings.ingest_scope, filename)
        ref = build_object_ref(self._store.bucket, batch.id, filename, data)
        self._batch_repo.mark_uploading(batch.id, ref)
        Log.info(f"Batch {batch.id} awaiting upload at {ref}")
        return UploadTicket(batch_id=batch.id, source_file_ref=ref)

    def complete_upload(self, batch_id: str) -> int:
        """Confirm the file is stored, move the batch to pending and enqueue a job.

        The status change and the job insert commit together.

        Raises:
            UploadNotFoundError: if the batch is not uploading or the file is missing.
        """
        batch = self._batch_repo.find_by_id(batch_id)
        if batch.status != BatchStatus.UPLOADING.value:
            raise UploadNotFoundError(
                f"Batch {batch_id} is '{batch.status}', expected '{BatchStatus.UPLOADING.value}'"
            )
        if not batch.source_file_ref or not self._store.exists(batch.source_file_ref):
            raise UploadNotFoundError(f"No uploaded file for batch {batch_id}")

        with get_connection() as conn:
            self._batch_repo.mark_upload_confirmed(batch_id, conn)
            job_id = self._job_repo.enqueue(batch_id, conn)
            conn.commit()
        Log.info(f"Batch {batch_id} uploaded, job {job_id} enqueued")
        return job_id

    def upload(self, filename: str, data: bytes) -> UploadTicket:
        """Run both phases for a file already in memory."""
        ticket = self.init_upload(filename, data)
        self._store.upload(ticket.source_file_ref, data)
        self.complete_upload(ticket.batch_id)
        return ticket
