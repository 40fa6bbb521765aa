from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from wasteflow.classification.models import ClassificationResult


@dataclass(frozen=True)
class RecordProjection:
    """Canonical fields of an accepted row, parsed and cleaned."""

    operation_date: date
    resource_label: str
    origin_label: str | None
    destination_label: str | None
    quantity: Decimal
    unit: str
    entity_code: str | None = None
    entity_label: str | None = None
    site_code: str | None = None
    site_label: str | None = None
    supplier_code: str | None = None
    supplier_label: str | None = None
    accounting_origin: str | None = None
    chapter_code: str | None = None
    chapter_label: str | None = None
    sub_chapter_code: str | None = None
    sub_chapter_label: str | None = None
    rubric_code: str | None = None
    rubric_label: str | None = None


@dataclass(frozen=True)
class ClassifiedRecord:
    """Unit persisted to the sink."""

    projection: RecordProjection
    classification: ClassificationResult
    dedup_key: str
    raw: dict[str, object] = field(default_factory=dict)
    row_number: int = 0


@dataclass(frozen=True)
class PendingCompletion:
    """Waste row no classifier tier could code; completed by hand downstream."""

    projection: RecordProjection
    dedup_key: str
    raw: dict[str, object] = field(default_factory=dict)
    row_number: int = 0


class RowOutcome(str, Enum):
    CLASSIFIED = "classified"
    PENDING = "pending"
    NOT_WASTE = "not_waste"
    FILTERED = "filtered"
    INVALID = "invalid"


@dataclass(frozen=True)
class RowResult:
    outcome: RowOutcome
    record: ClassifiedRecord | None = None
    pending: PendingCompletion | None = None
    reason: str = ""


@dataclass
class IngestCounters:
    """Per-batch counters. ``rows_in`` counts every decoded row."""

    rows_in: int = 0
    rows_ok: int = 0
    rows_warn: int = 0
    rows_err: int = 0
    rows_skipped: int = 0
    rows_pending: int = 0
    rows_duplicate: int = 0


@dataclass
class ProcessorResult:
    """Outcome of one batch run."""

    batch_id: str
    status: str
    counters: IngestCounters
