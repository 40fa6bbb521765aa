import pytest

from wasteflow.classification.classifier import WasteClassifier, suggest
from wasteflow.classification.codes import parse_code
from wasteflow.classification.models import (
    ConfidenceTier,
    CorrespondenceEntry,
    Source,
    WasteCategory,
)
from wasteflow.classification.reference_data import ReferenceTables, get_reference_tables
from wasteflow.classification.waste_map import WASTE_MAP


def _make_classifier(*entries: CorrespondenceEntry) -> WasteClassifier:
    return WasteClassifier(ReferenceTables(correspondence=tuple(entries), waste_map=WASTE_MAP))


def _make_entry(source: Source, term: str, code: str, hazardous: bool) -> CorrespondenceEntry:
    return CorrespondenceEntry(
        source=source,
        matched_term=term,
        catalogued_formulation=term,
        code=parse_code(code),
        hazardous=hazardous,
    )


class TestScenarios:
    def test_concrete(self) -> None:
        result = suggest("Béton")
        assert result is not None
        assert result.code == "170101"
        assert result.category == WasteCategory.INERT
        assert result.hazardous is False
        assert result.confidence_tier == ConfidenceTier.KEYWORD_MATCH

    def test_used_oil(self) -> None:
        result = suggest("huile de vidange")
        assert result is not None
        assert result.code == "130205"
        assert result.hazardous is True
        assert result.confidence_tier == ConfidenceTier.TABLE_MATCH

    def test_trailing_explicit_code(self) -> None:
        result = suggest("Apport divers chantier 17 03 02")
        assert result is not None
        assert result.code == "170302"
        assert result.confidence_tier == ConfidenceTier.EXPLICIT
        assert result.category == WasteCategory.INERT

    def test_polluted_soil(self) -> None:
        result = suggest("terre polluée")
        assert result is not None
        assert result.code == "170503"
        assert result.hazardous is True
        assert result.category == WasteCategory.HAZARDOUS

    def test_polluted_soil_from_keywords_alone(self) -> None:
        result = _make_classifier().suggest("terre polluée")
        assert result is not None
        assert result.code == "170503"
        assert result.hazardous is True
        assert result.confidence_tier == ConfidenceTier.KEYWORD_MATCH


class TestTierPriority:
    def test_explicit_code_beats_keywords(self) -> None:
        result = suggest("Béton 17 05 04")
        assert result is not None
        assert result.code == "170504"
        assert result.confidence_tier == ConfidenceTier.EXPLICIT

    def test_table_beats_explicit_code(self) -> None:
        classifier = _make_classifier(_make_entry(Source.WORKSHOP, "boue", "13 05 08*", True))
        result = classifier.suggest("boue 19 08 05")
        assert result is not None
        assert result.code == "130508"
        assert result.confidence_tier == ConfidenceTier.TABLE_MATCH

    def test_declared_source(self) -> None:
        classifier = _make_classifier(
            _make_entry(Source.WORKSHOP, "boue", "13 05 08*", True),
            _make_entry(Source.DEPOT, "boue", "19 08 05", False),
        )
        from_depot = classifier.suggest("boue", Source.DEPOT)
        default = classifier.suggest("boue")
        assert from_depot is not None and from_depot.code == "190805"
        assert default is not None and default.code == "130508"


class TestHazardComposition:
    def test_table_flag_without_asterisk(self) -> None:
        classifier = _make_classifier(_make_entry(Source.LAB, "aerosols", "16 05 04", True))
        result = classifier.suggest("Aérosols")
        assert result is not None
        assert result.hazardous is True
        assert result.category == WasteCategory.HAZARDOUS

    def test_asterisk_with_non_hazardous_table_entry(self) -> None:
        result = suggest("DEEE en mélange *")
        assert result is not None
        assert result.confidence_tier == ConfidenceTier.TABLE_MATCH
        assert result.hazardous is True

    def test_non_hazardous_table_entry(self) -> None:
        result = suggest("DEEE en mélange")
        assert result is not None
        assert result.hazardous is False

    def test_asterisk_on_inert_code(self) -> None:
        result = suggest("Gravats 17 01 07*")
        assert result is not None
        assert result.code == "170107"
        assert result.hazardous is True
        assert result.category == WasteCategory.HAZARDOUS
        assert result.display_code() == "17 01 07*"

    def test_unknown_explicit_code(self) -> None:
        result = suggest("Divers 19 12 12")
        assert result is not None
        assert result.code == "191212"
        assert result.category == WasteCategory.UNDETERMINED
        assert result.hazardous is False


class TestSuggest:
    @pytest.mark.parametrize("label", ["Béton", "huile de vidange", "Enrobé ancien", "Gasoil"])
    def test_idempotent(self, label: str) -> None:
        assert suggest(label) == suggest(label)

    @pytest.mark.parametrize("label", [None, "", "   "])
    def test_blank_label(self, label: str | None) -> None:
        assert suggest(label) is None

    def test_unclassifiable(self) -> None:
        assert suggest("Gasoil") is None

    def test_uses_process_tables_by_default(self) -> None:
        assert WasteClassifier().tables is get_reference_tables()
