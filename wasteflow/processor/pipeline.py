import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from wasteflow.database.models import BatchRecord, JobLease
from wasteflow.processor.models import ClassifiedRecord, IngestCounters, PendingCompletion
from wasteflow.tabular.base import DecodedTable


@dataclass(slots=True)
class PipelineContext:
    batch_id: str
    job_id: int
    lease: JobLease | None = None
    # Set by the lease keeper once the job's lease is gone.
    lease_lost: threading.Event = field(default_factory=threading.Event)
    batch: BatchRecord | None = None
    raw_bytes: bytes = b""
    table: DecodedTable | None = None
    records: list[ClassifiedRecord] = field(default_factory=list)
    pending: list[PendingCompletion] = field(default_factory=list)
    counters: IngestCounters = field(default_factory=IngestCounters)
    status: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
