import pytest

from wasteflow.columns.canonical import CanonicalFields, canonical_fields
from wasteflow.rules.business_filter import filter_values, passes
from wasteflow.tabular.delimited_decoder import DelimitedTableDecoder


def _make_fields(**overrides: object) -> CanonicalFields:
    values: dict[str, object] = {
        "origin": "Réception",
        "chapter_label": "S/T & PRESTATAIRES",
        "sub_chapter_label": None,
        "rubric_label": "Traitement dechets inertes",
    }
    values.update(overrides)
    return CanonicalFields(**values)


class TestPasses:
    def test_allowed_row(self) -> None:
        assert passes(_make_fields()) is True

    def test_personnel_timesheet_rejected(self) -> None:
        assert passes(_make_fields(origin="Pointage personnel")) is False

    def test_chapter_outside_list(self) -> None:
        assert passes(_make_fields(chapter_label="PERSONNEL")) is False

    def test_missing_chapter(self) -> None:
        assert passes(_make_fields(chapter_label=None)) is False

    def test_excluded_sub_chapter(self) -> None:
        assert passes(_make_fields(sub_chapter_label="CONSOMMABLES")) is False

    def test_other_sub_chapter(self) -> None:
        assert passes(_make_fields(sub_chapter_label="BETONS, MORTIERS, AGREGATS")) is True

    def test_missing_rubric(self) -> None:
        assert passes(_make_fields(rubric_label=None)) is False


class TestRubricExactness:
    @pytest.mark.parametrize(
        "rubric",
        [
            "Traitement dechets inertes ",
            " Traitement dechets inertes",
            "traitement dechets inertes",
            "TRAITEMENT DECHETS INERTES",
            "Traitement déchets inertes",
        ],
    )
    def test_near_misses_rejected(self, rubric: str) -> None:
        assert passes(_make_fields(rubric_label=rubric)) is False

    def test_non_text_rubric_rejected(self) -> None:
        assert passes(_make_fields(rubric_label=42)) is False

    @pytest.mark.parametrize(("rubric", "expected"), [("SABLE", True), ("SABLE ", False)])
    def test_decoded_rubric_is_compared_as_written(self, rubric: str, expected: bool) -> None:
        data = (
            "Libellé Ressource;Libellé Chapitre Comptable;Libellé Rubrique Comptable;Quantité\n"
            f"Béton;MATERIEL;{rubric};1\n"
        ).encode()
        row = DelimitedTableDecoder().decode(data).rows[0]
        assert passes(canonical_fields(row)) is expected


class TestFilterValues:
    def test_reports_values_and_verdict(self) -> None:
        values = filter_values(_make_fields(chapter_label=" MATERIEL "))
        assert values.chapter == "MATERIEL"
        assert values.rubric == "Traitement dechets inertes"
        assert values.passes is True
