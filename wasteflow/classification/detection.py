"""Waste detection gate: does a resource label describe a waste stream?"""

import re
from collections.abc import Sequence

from wasteflow.classification.codes import extract_code
from wasteflow.classification.keywords import match_keywords
from wasteflow.classification.models import WasteMapEntry
from wasteflow.classification.text import normalize_text, significant_words
from wasteflow.classification.waste_map import WASTE_MAP

_RENTAL_PREFIXES = ("loc ", "location ")

_VEHICLE_WORD_RE = re.compile(r"\b(?:camion|camions|vehicule|vehicules|poids lourds?)\b")
# Normalization turns "3.5t" into "3 5t", hence the optional space.
_VEHICLE_CODE_RE = re.compile(r"\b(?:p?8x4|6x4|4x2|3t5|3 ?5 ?t)\b")
_BODY_TYPE_RE = re.compile(r"\b(?:benne|bennes|bibenne|plateau|ampliroll|grue)\b")

_RESALE_RE = re.compile(r"\brevente\b")
_QUARRY_RE = re.compile(r"\b(?:carriere|carrieres|materiau|materiaux)\b")

_BARE_SKIP_RE = re.compile(r"\b(?:benne|bennes|container|containers|conteneur|conteneurs)\b")

# Words of the keyword map too generic to signal a waste stream on their own.
_GENERIC_WORDS = frozenset(
    {
        "non",
        "des",
        "les",
        "pas",
        "aux",
        "une",
        "pour",
        "avec",
        "melange",
        "melanges",
        "produit",
        "contenant",
        "ayant",
        "contenu",
        "usage",
        "usagee",
        "usagees",
        "dangereux",
        "tout",
        "venant",
        "sol",
        "sols",
        "boite",
        "vitesse",
        "eau",
        "moteur",
        "froid",
    }
)

_LEGACY_STEMS = (
    "terre",
    "deblai",
    "enrobe",
    "beton",
    "gravat",
    "inert",
    "ferraill",
    "granulat",
    "concasse",
)


def build_permissive_keywords(waste_map: Sequence[WasteMapEntry]) -> frozenset[str]:
    """Single words that are enough to suspect a waste stream."""
    words = {
        word
        for entry in waste_map
        for pattern in entry.patterns
        for word in significant_words(pattern)
        if word not in _GENERIC_WORDS
    }
    return frozenset(words.union(_LEGACY_STEMS))


PERMISSIVE_KEYWORDS = build_permissive_keywords(WASTE_MAP)


def is_rental(normalized_text: str) -> bool:
    return normalized_text.startswith(_RENTAL_PREFIXES)


def is_vehicle(normalized_text: str) -> bool:
    if _VEHICLE_WORD_RE.search(normalized_text):
        return True
    return bool(_VEHICLE_CODE_RE.search(normalized_text) and _BODY_TYPE_RE.search(normalized_text))


def is_quarry_resale(normalized_text: str) -> bool:
    return bool(_RESALE_RE.search(normalized_text) and _QUARRY_RE.search(normalized_text))


def has_permissive_keyword(normalized_text: str, keywords: frozenset[str] = PERMISSIVE_KEYWORDS) -> bool:
    """True when some word of the text starts with a permissive keyword."""
    return any(
        word.startswith(keyword) for word in normalized_text.split(" ") for keyword in keywords
    )


def is_excluded(normalized_text: str) -> bool:
    """Rental, vehicle, quarry resale, or a bare skip with no waste keyword."""
    if is_rental(normalized_text) or is_vehicle(normalized_text) or is_quarry_resale(normalized_text):
        return True
    if _BARE_SKIP_RE.search(normalized_text):
        remainder = _BARE_SKIP_RE.sub(" ", normalized_text)
        return not has_permissive_keyword(remainder)
    return False


def is_waste(label: str | None, waste_map: Sequence[WasteMapEntry] = WASTE_MAP) -> bool:
    """Gate applied to every row before filtering and classification.

    Exclusions win over everything. Otherwise an explicit code, a strict
    keyword match, or a single permissive keyword is enough.
    """
    normalized_text = normalize_text(label)
    if not normalized_text:
        return False
    if is_excluded(normalized_text):
        return False
    if extract_code(label) is not None:
        return True
    if match_keywords(label, waste_map) is not None:
        return True
    return has_permissive_keyword(normalized_text)
