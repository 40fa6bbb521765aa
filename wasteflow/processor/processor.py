import threading
from collections.abc import Sequence

from wasteflow.classification.classifier import WasteClassifier
from wasteflow.config.settings import Settings
from wasteflow.database.models import JobLease
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.record_repository import RecordRepository
from wasteflow.logging.logger import Log
from wasteflow.processor.models import ProcessorResult
from wasteflow.processor.pipeline import PipelineContext, PipelineStep
from wasteflow.processor.row_processor import RowProcessor
from wasteflow.processor.steps import (
    ClassifyRowsStep,
    DecodeTableStep,
    EnsureLeaseStep,
    FetchBatchStep,
    LoadSourceStep,
    MarkCompletedStep,
    MarkProcessingStep,
    PersistRecordsStep,
)
from wasteflow.storage.base import BaseObjectStore
from wasteflow.storage.factory import ObjectStoreFactory


class Processor:
    """Drives one batch through the ingestion pipeline.

    Pipeline: fetch -> mark processing -> load -> decode -> classify ->
    persist -> mark completed, with a lease check before each write phase.
    Rows are handled in file order, one batch at a time; failures propagate to
    the job runner.
    """

    def __init__(self, steps: Sequence[PipelineStep]) -> None:
        self._steps = list(steps)

    def process(
        self,
        batch_id: str,
        job_id: int,
        lease: JobLease | None = None,
        lease_lost: threading.Event | None = None,
    ) -> ProcessorResult:
        """Run every step for a batch.

        With a lease, batch transitions only apply while the job still holds
        it, and setting lease_lost stops the run at the next lease check.
        """
        Log.info(f"Processing batch {batch_id} for job {job_id}")
        context = PipelineContext(batch_id=batch_id, job_id=job_id, lease=lease)
        if lease_lost is not None:
            context.lease_lost = lease_lost
        for step in self._steps:
            context = step.run(context)
        return ProcessorResult(batch_id=batch_id, status=context.status, counters=context.counters)


def build_processor(
    settings: Settings,
    store: BaseObjectStore | None = None,
    classifier: WasteClassifier | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    store = store if store is not None else ObjectStoreFactory.create(settings)
    batch_repo = BatchRepository()
    record_repo = RecordRepository()
    row_processor = RowProcessor(classifier if classifier is not None else WasteClassifier())
    return Processor(
        steps=[
            FetchBatchStep(batch_repo),
            MarkProcessingStep(batch_repo),
            LoadSourceStep(store),
            DecodeTableStep(),
            ClassifyRowsStep(row_processor),
            EnsureLeaseStep(),
            PersistRecordsStep(record_repo, settings.persist_chunk_size),
            EnsureLeaseStep(),
            MarkCompletedStep(batch_repo),
        ]
    )
