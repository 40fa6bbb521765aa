import functools
import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import psycopg
from psycopg.types.json import Jsonb

from wasteflow.database.connection import get_connection
from wasteflow.logging.logger import Log
from wasteflow.processor.models import ClassifiedRecord, PendingCompletion

# Raw payloads hold dates and decimals straight from the decoder.
_dumps = functools.partial(json.dumps, default=str, ensure_ascii=False)

_INSERT_RECORD_SQL = """
    INSERT INTO waste_records (
        scope, batch_id, dedup_key, operation_date, resource_label,
        origin_label, destination_label, quantity, unit, waste_code,
        hazardous, category, confidence_tier, classification_label,
        entity_code, entity_label, site_code, site_label, supplier_code,
        supplier_label, accounting_origin, chapter_code, chapter_label,
        sub_chapter_code, sub_chapter_label, rubric_code, rubric_label,
        row_number, raw
    )
    VALUES (
        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
    )
    ON CONFLICT (scope, dedup_key) DO NOTHING
    RETURNING id
"""

_INSERT_PENDING_SQL = """
    INSERT INTO pending_completions (
        scope, batch_id, dedup_key, operation_date, resource_label,
        origin_label, destination_label, quantity, unit, row_number, raw
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    ON CONFLICT (scope, dedup_key) DO NOTHING
    RETURNING id
"""


@dataclass
class ChunkOutcome:
    """Rows written by one chunk insert, counted from the ids the inserts return.

    Conflicting rows return no id and count in neither field.
    """

    inserted: int = 0
    failed: int = 0


def record_params(record: ClassifiedRecord, batch_id: str, scope: str) -> tuple[Any, ...]:
    p = record.projection
    c = record.classification
    return (
        scope,
        batch_id,
        record.dedup_key,
        p.operation_date,
        p.resource_label,
        p.origin_label,
        p.destination_label,
        p.quantity,
        p.unit,
        c.code,
        c.hazardous,
        c.category.value,
        c.confidence_tier.value,
        c.label,
        p.entity_code,
        p.entity_label,
        p.site_code,
        p.site_label,
        p.supplier_code,
        p.supplier_label,
        p.accounting_origin,
        p.chapter_code,
        p.chapter_label,
        p.sub_chapter_code,
        p.sub_chapter_label,
        p.rubric_code,
        p.rubric_label,
        record.row_number,
        Jsonb(record.raw, dumps=_dumps),
    )


def pending_params(pending: PendingCompletion, batch_id: str, scope: str) -> tuple[Any, ...]:
    p = pending.projection
    return (
        scope,
        batch_id,
        pending.dedup_key,
        p.operation_date,
        p.resource_label,
        p.origin_label,
        p.destination_label,
        p.quantity,
        p.unit,
        pending.row_number,
        Jsonb(pending.raw, dumps=_dumps),
    )


def _count_returned(cur: psycopg.Cursor[Any]) -> int:
    """Rows returned across the result sets of an executemany(returning=True)."""
    count = 0
    while True:
        count += len(cur.fetchall())
        if not cur.nextset():
            break
    return count


class RecordRepository:
    """Sink for classified records and pending completions."""

    def insert_records(self, records: Sequence[ClassifiedRecord], batch_id: str, scope: str) -> ChunkOutcome:
        """Insert one chunk; rows already present for the scope are skipped.

        If the bulk insert hits an integrity error the chunk is rolled back
        and retried row by row, so one bad row does not lose the others.
        """
        if not records:
            return ChunkOutcome()
        params = [record_params(record, batch_id, scope) for record in records]
        return self._insert_chunk(_INSERT_RECORD_SQL, params, batch_id)

    def insert_pending(self, pendings: Sequence[PendingCompletion], batch_id: str, scope: str) -> ChunkOutcome:
        """Queue rows for manual completion; same conflict rules as records."""
        if not pendings:
            return ChunkOutcome()
        params = [pending_params(pending, batch_id, scope) for pending in pendings]
        return self._insert_chunk(_INSERT_PENDING_SQL, params, batch_id)

    def _insert_chunk(self, query: str, params: list[tuple[Any, ...]], batch_id: str) -> ChunkOutcome:
        with get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.executemany(query, params, returning=True)
                    inserted = _count_returned(cur)
                conn.commit()
                return ChunkOutcome(inserted=inserted)
            except psycopg.IntegrityError as exc:
                conn.rollback()
                Log.warning(
                    f"Batch {batch_id}: bulk insert of {len(params)} rows rejected ({exc}), "
                    "retrying row by row"
                )
            return self._insert_row_by_row(conn, query, params, batch_id)

    def _insert_row_by_row(
        self,
        conn: psycopg.Connection[Any],
        query: str,
        params: list[tuple[Any, ...]],
        batch_id: str,
    ) -> ChunkOutcome:
        outcome = ChunkOutcome()
        for row_params in params:
            try:
                with conn.cursor() as cur:
                    cur.execute(query, row_params)
                    if cur.fetchone() is not None:
                        outcome.inserted += 1
                conn.commit()
            except psycopg.IntegrityError as exc:
                conn.rollback()
                outcome.failed += 1
                Log.warning(f"Batch {batch_id}: row rejected by the sink: {exc}")
        return outcome

    def count_for_batch(self, batch_id: str) -> int:
        """Number of records persisted for a batch. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM waste_records WHERE batch_id = %s", (batch_id,))
                row = cur.fetchone()
        return int(row[0]) if row else 0
