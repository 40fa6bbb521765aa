from datetime import date
from decimal import Decimal

from wasteflow.processor.dedup import compute_dedup_key, dedup_key
from wasteflow.processor.models import RecordProjection


def _make_projection(**overrides: object) -> RecordProjection:
    values: dict[str, object] = {
        "operation_date": date(2024, 3, 12),
        "resource_label": "Béton",
        "origin_label": "Agence Nord",
        "destination_label": "Recyclage Sud",
        "quantity": Decimal("12.340"),
        "unit": "T",
    }
    values.update(overrides)
    return RecordProjection(**values)


class TestComputeDedupKey:
    def test_deterministic(self) -> None:
        args = (date(2024, 3, 12), "Béton", "Agence Nord", "Recyclage Sud", Decimal("12.34"))
        assert compute_dedup_key(*args) == compute_dedup_key(*args)

    def test_quantity_rounded_to_three_decimals(self) -> None:
        first = compute_dedup_key(date(2024, 3, 12), "Béton", "A", "B", Decimal("12.3401"))
        second = compute_dedup_key(date(2024, 3, 12), "Béton", "A", "B", Decimal("12.340"))
        assert first == second

    def test_case_insensitive(self) -> None:
        first = compute_dedup_key(date(2024, 3, 12), "BETON", "A", "B", Decimal("1"))
        second = compute_dedup_key(date(2024, 3, 12), "beton", "a", "b", Decimal("1"))
        assert first == second

    def test_fields_matter(self) -> None:
        first = compute_dedup_key(date(2024, 3, 12), "Béton", "A", "B", Decimal("1"))
        second = compute_dedup_key(date(2024, 3, 13), "Béton", "A", "B", Decimal("1"))
        assert first != second

    def test_md5_hex(self) -> None:
        key = compute_dedup_key(None, None, None, None, Decimal("0"))
        assert len(key) == 32


class TestDedupKey:
    def test_ignores_fields_outside_the_key(self) -> None:
        first = _make_projection(unit="T", entity_code="E01", rubric_label="Fraisat")
        second = _make_projection(rubric_label="Fraisat", entity_code="E02", unit="m³")
        assert dedup_key(first) == dedup_key(second)
