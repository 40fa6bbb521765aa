from wasteflow.classification.codes import extract_code, has_hazard_marker
from wasteflow.classification.correspondence import find_correspondence
from wasteflow.classification.keywords import match_keywords
from wasteflow.classification.models import (
    ClassificationResult,
    ConfidenceTier,
    Source,
    WasteCategory,
)
from wasteflow.classification.reference_data import ReferenceTables, get_reference_tables
from wasteflow.classification.waste_map import find_by_code


def _category_for(hazardous: bool) -> WasteCategory:
    return WasteCategory.HAZARDOUS if hazardous else WasteCategory.NON_HAZARDOUS


class WasteClassifier:
    """Three-tier resolution of a resource label to a waste code.

    Tiers, first success wins: correspondence table, explicit code, keyword
    map. The final hazard flag is the asterisk in the label OR the flag of the
    tier that matched.
    """

    def __init__(self, tables: ReferenceTables | None = None) -> None:
        self._tables = tables

    @property
    def tables(self) -> ReferenceTables:
        if self._tables is not None:
            return self._tables
        return get_reference_tables()

    def suggest(self, label: str | None, source: Source | None = None) -> ClassificationResult | None:
        if not label or not str(label).strip():
            return None
        tables = self.tables
        label_marker = has_hazard_marker(label)
        return (
            self._from_correspondence(label, source, tables, label_marker)
            or self._from_explicit_code(label, tables, label_marker)
            or self._from_keywords(label, tables, label_marker)
        )

    def _from_correspondence(
        self,
        label: str,
        source: Source | None,
        tables: ReferenceTables,
        label_marker: bool,
    ) -> ClassificationResult | None:
        entry = find_correspondence(label, source, tables.correspondence)
        if entry is None:
            return None
        hazardous = label_marker or entry.hazardous
        known = find_by_code(entry.code.code, tables.waste_map)
        category = _category_for(hazardous)
        if not hazardous and known is not None and known.category != WasteCategory.HAZARDOUS:
            category = known.category
        return ClassificationResult(
            code=entry.code.code,
            label=entry.catalogued_formulation or entry.matched_term,
            category=category,
            hazardous=hazardous,
            confidence_tier=ConfidenceTier.TABLE_MATCH,
        )

    def _from_explicit_code(
        self,
        label: str,
        tables: ReferenceTables,
        label_marker: bool,
    ) -> ClassificationResult | None:
        code = extract_code(label)
        if code is None:
            return None
        known = find_by_code(code.code, tables.waste_map)
        if known is None:
            return ClassificationResult(
                code=code.code,
                label=label.strip(),
                category=WasteCategory.UNDETERMINED,
                hazardous=label_marker,
                confidence_tier=ConfidenceTier.EXPLICIT,
            )
        hazardous = label_marker or known.code.hazardous_marker
        return ClassificationResult(
            code=code.code,
            label=known.label,
            category=WasteCategory.HAZARDOUS if hazardous else known.category,
            hazardous=hazardous,
            confidence_tier=ConfidenceTier.EXPLICIT,
        )

    def _from_keywords(
        self,
        label: str,
        tables: ReferenceTables,
        label_marker: bool,
    ) -> ClassificationResult | None:
        entry = match_keywords(label, tables.waste_map)
        if entry is None:
            return None
        hazardous = label_marker or entry.code.hazardous_marker or entry.category == WasteCategory.HAZARDOUS
        return ClassificationResult(
            code=entry.code.code,
            label=entry.label,
            category=WasteCategory.HAZARDOUS if hazardous else entry.category,
            hazardous=hazardous,
            confidence_tier=ConfidenceTier.KEYWORD_MATCH,
        )


_default_classifier = WasteClassifier()


def suggest(label: str | None, source: Source | None = None) -> ClassificationResult | None:
    """Classify a label against the process-wide reference tables."""
    return _default_classifier.suggest(label, source)
