from wasteflow.classification.classifier import WasteClassifier, suggest
from wasteflow.classification.codes import WasteCode, extract_code, has_hazard_marker, parse_code
from wasteflow.classification.detection import is_waste
from wasteflow.classification.models import (
    ClassificationResult,
    ConfidenceTier,
    CorrespondenceEntry,
    Source,
    WasteCategory,
    WasteMapEntry,
)
from wasteflow.classification.reference_data import (
    ReferenceTables,
    get_reference_tables,
    reload_reference_tables,
)

__all__ = [
    "ClassificationResult",
    "ConfidenceTier",
    "CorrespondenceEntry",
    "ReferenceTables",
    "Source",
    "WasteCategory",
    "WasteClassifier",
    "WasteCode",
    "WasteMapEntry",
    "extract_code",
    "get_reference_tables",
    "has_hazard_marker",
    "is_waste",
    "parse_code",
    "reload_reference_tables",
    "suggest",
]
