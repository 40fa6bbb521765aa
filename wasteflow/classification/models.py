from dataclasses import dataclass
from enum import Enum

from wasteflow.classification.codes import WasteCode


class WasteCategory(str, Enum):
    INERT = "inert"
    NON_HAZARDOUS = "non_hazardous"
    HAZARDOUS = "hazardous"
    UNDETERMINED = "undetermined"


class ConfidenceTier(str, Enum):
    EXPLICIT = "explicit"
    TABLE_MATCH = "table_match"
    KEYWORD_MATCH = "keyword_match"
    NONE = "none"


class Source(str, Enum):
    """Declared origin context of a label, in lookup priority order."""

    WORKSHOP = "workshop"
    LAB = "lab"
    DEPOT = "depot"


SOURCE_PRIORITY: tuple[Source, ...] = (Source.WORKSHOP, Source.LAB, Source.DEPOT)

CATEGORY_PRIORITY: dict[WasteCategory, int] = {
    WasteCategory.HAZARDOUS: 1,
    WasteCategory.INERT: 2,
    WasteCategory.NON_HAZARDOUS: 3,
}


@dataclass(frozen=True)
class CorrespondenceEntry:
    """Curated literal term -> code mapping row."""

    source: Source
    matched_term: str
    catalogued_formulation: str
    code: WasteCode
    hazardous: bool


@dataclass(frozen=True)
class WasteMapEntry:
    """Keyword-map row: any of ``patterns`` identifies the waste type."""

    patterns: tuple[str, ...]
    label: str
    code: WasteCode
    category: WasteCategory


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of resolving a resource label to a waste code."""

    code: str | None
    label: str
    category: WasteCategory
    hazardous: bool
    confidence_tier: ConfidenceTier

    def display_code(self) -> str | None:
        if self.code is None:
            return None
        return WasteCode(self.code, self.hazardous).display()
