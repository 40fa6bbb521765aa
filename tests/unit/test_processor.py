import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from wasteflow.batches.state import BatchStatus
from wasteflow.classification.classifier import WasteClassifier
from wasteflow.database.models import BatchRecord, JobLease
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.record_repository import ChunkOutcome, RecordRepository
from wasteflow.processor.exceptions import LeaseLostError
from wasteflow.processor.processor import Processor, build_processor
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
from wasteflow.tabular.exceptions import EmptyTableError


def _make_batch() -> BatchRecord:
    return BatchRecord(
        id="b1",
        scope="default",
        status="pending",
        source_filename="export.csv",
        source_file_ref="raw/b1/abcd1234-export.csv",
    )


def _make_pipeline(source: bytes) -> tuple[Processor, MagicMock, MagicMock, MagicMock]:
    batch_repo = MagicMock(spec=BatchRepository)
    record_repo = MagicMock(spec=RecordRepository)
    store = MagicMock()

    batch_repo.find_by_id.return_value = _make_batch()
    store.download.return_value = source
    record_repo.insert_records.side_effect = lambda records, batch_id, scope: ChunkOutcome(inserted=len(records))
    record_repo.insert_pending.side_effect = lambda pendings, batch_id, scope: ChunkOutcome(inserted=len(pendings))

    processor = Processor(
        steps=[
            FetchBatchStep(batch_repo),
            MarkProcessingStep(batch_repo),
            LoadSourceStep(store),
            DecodeTableStep(),
            ClassifyRowsStep(RowProcessor(WasteClassifier())),
            EnsureLeaseStep(),
            PersistRecordsStep(record_repo, chunk_size=500),
            EnsureLeaseStep(),
            MarkCompletedStep(batch_repo),
        ]
    )
    return processor, batch_repo, record_repo, store


class TestProcessorHappyPath:
    def test_runs_every_step(self, ledger_csv_bytes: bytes) -> None:
        processor, batch_repo, record_repo, store = _make_pipeline(ledger_csv_bytes)

        result = processor.process("b1", 7)

        batch_repo.find_by_id.assert_called_once_with("b1")
        batch_repo.mark_processing.assert_called_once_with("b1", None)
        store.download.assert_called_once_with("raw/b1/abcd1234-export.csv")
        record_repo.insert_records.assert_called_once()
        record_repo.insert_pending.assert_called_once()
        assert result.batch_id == "b1"
        assert result.status == BatchStatus.COMPLETED_WITH_WARNINGS.value

    def test_counters(self, ledger_csv_bytes: bytes) -> None:
        processor, batch_repo, _records, _store = _make_pipeline(ledger_csv_bytes)

        result = processor.process("b1", 7)

        counters = result.counters
        assert counters.rows_in == 6
        assert counters.rows_ok == 1
        assert counters.rows_warn == 1
        assert counters.rows_err == 0
        assert counters.rows_pending == 1
        batch_repo.mark_finished.assert_called_once_with(
            "b1", BatchStatus.COMPLETED_WITH_WARNINGS, counters, None
        )

    def test_workbook_source(self, ledger_xlsx_bytes: bytes) -> None:
        processor, batch_repo, _records, _store = _make_pipeline(ledger_xlsx_bytes)
        batch_repo.find_by_id.return_value = BatchRecord(
            id="b1",
            scope="default",
            status="pending",
            source_filename="export.xlsx",
            source_file_ref="raw/b1/abcd1234-export.xlsx",
        )

        result = processor.process("b1", 7)

        assert result.counters.rows_in == 6
        assert result.counters.rows_ok == 1


class TestProcessorFailures:
    def test_empty_file_propagates(self) -> None:
        processor, batch_repo, record_repo, _store = _make_pipeline(b"")

        with pytest.raises(EmptyTableError):
            processor.process("b1", 7)

        record_repo.insert_records.assert_not_called()
        batch_repo.mark_finished.assert_not_called()

    def test_persistence_error_propagates(self, ledger_csv_bytes: bytes) -> None:
        processor, batch_repo, record_repo, _store = _make_pipeline(ledger_csv_bytes)
        record_repo.insert_records.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError, match="connection lost"):
            processor.process("b1", 7)

        batch_repo.mark_finished.assert_not_called()


class TestProcessorLease:
    LEASE = JobLease(job_id=7, locked_at=datetime(2024, 3, 12, 8, 0, tzinfo=timezone.utc))

    def test_transitions_carry_the_lease(self, ledger_csv_bytes: bytes) -> None:
        processor, batch_repo, _records, _store = _make_pipeline(ledger_csv_bytes)

        result = processor.process("b1", 7, lease=self.LEASE)

        batch_repo.mark_processing.assert_called_once_with("b1", self.LEASE)
        batch_repo.mark_finished.assert_called_once_with(
            "b1", BatchStatus.COMPLETED_WITH_WARNINGS, result.counters, self.LEASE
        )

    def test_lost_lease_stops_before_writing(self, ledger_csv_bytes: bytes) -> None:
        processor, batch_repo, record_repo, _store = _make_pipeline(ledger_csv_bytes)
        lease_lost = threading.Event()
        lease_lost.set()

        with pytest.raises(LeaseLostError, match="Job 7 lost its lease"):
            processor.process("b1", 7, lease=self.LEASE, lease_lost=lease_lost)

        record_repo.insert_records.assert_not_called()
        batch_repo.mark_finished.assert_not_called()

    def test_lease_lost_while_persisting(self, ledger_csv_bytes: bytes) -> None:
        processor, batch_repo, record_repo, _store = _make_pipeline(ledger_csv_bytes)
        lease_lost = threading.Event()
        record_repo.insert_pending.side_effect = lambda pendings, batch_id, scope: (
            lease_lost.set() or ChunkOutcome(inserted=len(pendings))
        )

        with pytest.raises(LeaseLostError):
            processor.process("b1", 7, lease=self.LEASE, lease_lost=lease_lost)

        record_repo.insert_records.assert_called_once()
        batch_repo.mark_finished.assert_not_called()


class TestBuildProcessor:
    @patch("wasteflow.processor.processor.ObjectStoreFactory")
    def test_builds_default_pipeline(self, mock_factory: MagicMock) -> None:
        settings = MagicMock(persist_chunk_size=100)

        processor = build_processor(settings)

        mock_factory.create.assert_called_once_with(settings)
        assert isinstance(processor, Processor)

    def test_uses_given_store(self) -> None:
        store = MagicMock()
        processor = build_processor(MagicMock(persist_chunk_size=100), store=store)
        load_step = next(step for step in processor._steps if isinstance(step, LoadSourceStep))
        assert load_step._store is store
