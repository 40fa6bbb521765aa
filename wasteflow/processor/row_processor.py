from collections.abc import Callable, Mapping

from wasteflow.classification.classifier import WasteClassifier
from wasteflow.classification.detection import is_waste
from wasteflow.columns.canonical import CanonicalFields, canonical_fields
from wasteflow.logging.logger import Log
from wasteflow.processor.dedup import dedup_key
from wasteflow.processor.models import (
    ClassifiedRecord,
    PendingCompletion,
    RecordProjection,
    RowOutcome,
    RowResult,
)
from wasteflow.processor.parsing import (
    clean_label,
    normalize_unit,
    optional_label,
    parse_operation_date,
    parse_quantity,
)
from wasteflow.rules.business_filter import filter_values, passes


def destination_label(canonical: CanonicalFields) -> str | None:
    """Where the waste goes: the supplier, else the site itself."""
    return optional_label(canonical.supplier_label) or optional_label(canonical.site_label)


class RowProcessor:
    """Turns one raw row into a classified record, a pending completion, or a skip.

    Order: waste gate, accounting filter, quantity and date parsing,
    classification.
    """

    def __init__(
        self,
        classifier: WasteClassifier,
        waste_gate: Callable[[str | None], bool] = is_waste,
        row_filter: Callable[[CanonicalFields], bool] = passes,
    ) -> None:
        self._classifier = classifier
        self._waste_gate = waste_gate
        self._row_filter = row_filter

    def process(self, row: Mapping[str, object], row_number: int = 0) -> RowResult:
        canonical = canonical_fields(row)
        label = clean_label(canonical.resource_label)

        if not self._waste_gate(label):
            return RowResult(RowOutcome.NOT_WASTE, reason="not a waste stream")
        if not self._row_filter(canonical):
            values = filter_values(canonical)
            Log.debug(
                f"Row {row_number} outside accounting perimeter: origin={values.origin!r}, "
                f"chapter={values.chapter!r}, sub_chapter={values.sub_chapter!r}, rubric={values.rubric!r}"
            )
            return RowResult(RowOutcome.FILTERED, reason="outside accounting perimeter")

        quantity = parse_quantity(canonical.quantity)
        if quantity is None:
            return RowResult(RowOutcome.INVALID, reason=f"invalid quantity {canonical.quantity!r}")
        operation_date = parse_operation_date(canonical.operation_date)
        if operation_date is None:
            return RowResult(RowOutcome.INVALID, reason=f"invalid date {canonical.operation_date!r}")

        projection = RecordProjection(
            operation_date=operation_date,
            resource_label=label,
            origin_label=optional_label(canonical.entity_label),
            destination_label=destination_label(canonical),
            quantity=quantity,
            unit=normalize_unit(canonical.unit),
            entity_code=optional_label(canonical.entity_code),
            entity_label=optional_label(canonical.entity_label),
            site_code=optional_label(canonical.site_code),
            site_label=optional_label(canonical.site_label),
            supplier_code=optional_label(canonical.supplier_code),
            supplier_label=optional_label(canonical.supplier_label),
            accounting_origin=optional_label(canonical.origin),
            chapter_code=optional_label(canonical.chapter_code),
            chapter_label=optional_label(canonical.chapter_label),
            sub_chapter_code=optional_label(canonical.sub_chapter_code),
            sub_chapter_label=optional_label(canonical.sub_chapter_label),
            rubric_code=optional_label(canonical.rubric_code),
            rubric_label=optional_label(canonical.rubric_label),
        )
        key = dedup_key(projection)
        raw = dict(row)

        classification = self._classifier.suggest(label)
        if classification is None:
            pending = PendingCompletion(projection=projection, dedup_key=key, raw=raw, row_number=row_number)
            return RowResult(RowOutcome.PENDING, pending=pending, reason="no classification")

        record = ClassifiedRecord(
            projection=projection,
            classification=classification,
            dedup_key=key,
            raw=raw,
            row_number=row_number,
        )
        return RowResult(RowOutcome.CLASSIFIED, record=record)
