from collections.abc import Iterator, Sequence
from typing import TypeVar

from wasteflow.batches.state import BatchStatus, ensure_transition, finished_status
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.record_repository import RecordRepository
from wasteflow.logging.logger import Log
from wasteflow.processor.exceptions import LeaseLostError, SourceFileError
from wasteflow.processor.models import RowOutcome
from wasteflow.processor.pipeline import PipelineContext, PipelineStep
from wasteflow.processor.row_processor import RowProcessor
from wasteflow.storage.base import BaseObjectStore
from wasteflow.storage.exceptions import StorageError
from wasteflow.tabular.factory import TableDecoderFactory

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class FetchBatchStep(PipelineStep):
    def __init__(self, batch_repo: BatchRepository) -> None:
        self._batch_repo = batch_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        context.batch = self._batch_repo.find_by_id(context.batch_id)
        return context


class MarkProcessingStep(PipelineStep):
    def __init__(self, batch_repo: BatchRepository) -> None:
        self._batch_repo = batch_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.batch is not None:
            ensure_transition(context.batch.status, BatchStatus.PROCESSING)
        self._batch_repo.mark_processing(context.batch_id, context.lease)
        Log.info(f"Batch {context.batch_id} marked as processing (job {context.job_id})")
        return context


class LoadSourceStep(PipelineStep):
    def __init__(self, store: BaseObjectStore) -> None:
        self._store = store

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.batch is None:
            raise ValueError("PipelineContext.batch must be set before loading the source")
        ref = context.batch.source_file_ref
        if not ref:
            raise SourceFileError(f"Batch {context.batch_id} has no source file reference")
        try:
            context.raw_bytes = self._store.download(ref)
        except StorageError as exc:
            raise SourceFileError(f"Cannot read source file {ref}: {exc}") from exc
        Log.info(f"Loaded {len(context.raw_bytes)} bytes for batch {context.batch_id}")
        return context


class DecodeTableStep(PipelineStep):
    def run(self, context: PipelineContext) -> PipelineContext:
        if context.batch is None:
            raise ValueError("PipelineContext.batch must be set before decoding")
        filename = context.batch.source_filename or context.batch.source_file_ref
        decoder = TableDecoderFactory.create(filename, context.raw_bytes)
        context.table = decoder.decode(context.raw_bytes)
        Log.info(
            f"Decoded {len(context.table.rows)} rows for batch {context.batch_id} "
            f"(header={context.table.has_header}, delimiter={context.table.delimiter!r})"
        )
        return context


class ClassifyRowsStep(PipelineStep):
    def __init__(self, row_processor: RowProcessor) -> None:
        self._row_processor = row_processor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.table is None:
            raise ValueError("PipelineContext.table must be set before classification")
        counters = context.counters
        seen: set[str] = set()

        for row_number, row in enumerate(context.table.rows, start=1):
            counters.rows_in += 1
            result = self._row_processor.process(row, row_number)

            if result.outcome == RowOutcome.INVALID:
                counters.rows_warn += 1
                Log.debug(f"Batch {context.batch_id} row {row_number}: {result.reason}")
            elif result.outcome in (RowOutcome.NOT_WASTE, RowOutcome.FILTERED):
                counters.rows_skipped += 1
            elif result.record is not None:
                if result.record.dedup_key in seen:
                    counters.rows_duplicate += 1
                    continue
                seen.add(result.record.dedup_key)
                context.records.append(result.record)
            elif result.pending is not None:
                if result.pending.dedup_key in seen:
                    counters.rows_duplicate += 1
                    continue
                seen.add(result.pending.dedup_key)
                context.pending.append(result.pending)

        Log.info(
            f"Batch {context.batch_id}: {counters.rows_in} rows, "
            f"{len(context.records)} classified, {len(context.pending)} to complete, "
            f"{counters.rows_warn} invalid, {counters.rows_skipped} skipped, "
            f"{counters.rows_duplicate} duplicates"
        )
        return context


class EnsureLeaseStep(PipelineStep):
    """Stops the pipeline once the job's lease is gone, before the next write."""

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.lease_lost.is_set():
            raise LeaseLostError(
                f"Job {context.job_id} lost its lease, batch {context.batch_id} left to its new owner"
            )
        return context


class PersistRecordsStep(PipelineStep):
    def __init__(self, record_repo: RecordRepository, chunk_size: int) -> None:
        self._record_repo = record_repo
        self._chunk_size = chunk_size

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.batch is None:
            raise ValueError("PipelineContext.batch must be set before persist")
        scope = context.batch.scope
        counters = context.counters

        for chunk in chunked(context.records, self._chunk_size):
            outcome = self._record_repo.insert_records(chunk, context.batch_id, scope)
            counters.rows_ok += outcome.inserted
            counters.rows_err += outcome.failed
            conflicts = len(chunk) - outcome.inserted - outcome.failed
            if conflicts:
                Log.info(f"Batch {context.batch_id}: {conflicts} rows already persisted, skipped")

        for chunk in chunked(context.pending, self._chunk_size):
            outcome = self._record_repo.insert_pending(chunk, context.batch_id, scope)
            counters.rows_pending += outcome.inserted
            counters.rows_err += outcome.failed

        Log.info(
            f"Batch {context.batch_id}: persisted {counters.rows_ok} records, "
            f"{counters.rows_pending} pending completions, {counters.rows_err} errors"
        )
        return context


class MarkCompletedStep(PipelineStep):
    def __init__(self, batch_repo: BatchRepository) -> None:
        self._batch_repo = batch_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        status = finished_status(context.counters.rows_warn, context.counters.rows_err)
        self._batch_repo.mark_finished(context.batch_id, status, context.counters, context.lease)
        context.status = status.value
        Log.info(f"Batch {context.batch_id} finished with status {status.value}")
        return context
