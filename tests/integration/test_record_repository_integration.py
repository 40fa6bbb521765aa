from datetime import date
from decimal import Decimal

import pytest

from wasteflow.classification.models import ClassificationResult, ConfidenceTier, WasteCategory
from wasteflow.database.models import BatchRecord
from wasteflow.database.repositories.record_repository import RecordRepository
from wasteflow.processor.dedup import dedup_key
from wasteflow.processor.models import ClassifiedRecord, PendingCompletion, RecordProjection


def _make_projection(quantity: str) -> RecordProjection:
    return RecordProjection(
        operation_date=date(2024, 3, 12),
        resource_label="Béton",
        origin_label="Agence Nord",
        destination_label="Recyclage Sud",
        quantity=Decimal(quantity).quantize(Decimal("0.001")),
        unit="T",
    )


def _make_record(quantity: str, row_number: int) -> ClassifiedRecord:
    projection = _make_projection(quantity)
    return ClassifiedRecord(
        projection=projection,
        classification=ClassificationResult(
            code="170101",
            label="Béton",
            category=WasteCategory.INERT,
            hazardous=False,
            confidence_tier=ConfidenceTier.KEYWORD_MATCH,
        ),
        dedup_key=dedup_key(projection),
        raw={"Quantité": quantity},
        row_number=row_number,
    )


@pytest.mark.integration
class TestInsertRecords:
    def test_rounded_duplicates_persist_once(self, seed_batch: BatchRecord) -> None:
        repo = RecordRepository()
        first = _make_record("12.3401", 1)
        second = _make_record("12.340", 2)
        assert first.dedup_key == second.dedup_key

        assert repo.insert_records([first], seed_batch.id, seed_batch.scope).inserted == 1
        outcome = repo.insert_records([second], seed_batch.id, seed_batch.scope)

        assert outcome.inserted == 0
        assert outcome.failed == 0
        assert repo.count_for_batch(seed_batch.id) == 1

    def test_same_key_in_other_scope_is_kept(self, seed_batch: BatchRecord) -> None:
        repo = RecordRepository()
        record = _make_record("4", 1)

        repo.insert_records([record], seed_batch.id, seed_batch.scope)
        outcome = repo.insert_records([record], seed_batch.id, f"{seed_batch.scope}-other")

        assert outcome.inserted == 1
        assert repo.count_for_batch(seed_batch.id) == 2

    def test_bad_row_does_not_lose_the_chunk(self, seed_batch: BatchRecord) -> None:
        repo = RecordRepository()
        good = _make_record("4", 1)
        bad = _make_record("-1", 2)

        outcome = repo.insert_records([good, bad], seed_batch.id, seed_batch.scope)

        assert outcome.inserted == 1
        assert outcome.failed == 1


@pytest.mark.integration
class TestInsertPending:
    def test_pending_completion_is_queued_once(self, seed_batch: BatchRecord) -> None:
        repo = RecordRepository()
        pending = PendingCompletion(projection=_make_projection("8"), dedup_key="pending-1", row_number=6)

        assert repo.insert_pending([pending], seed_batch.id, seed_batch.scope).inserted == 1
        assert repo.insert_pending([pending], seed_batch.id, seed_batch.scope).inserted == 0
