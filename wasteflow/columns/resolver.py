import math
import re
from collections.abc import Iterable, Mapping

from wasteflow.classification.text import strip_accents

_NON_ALNUM_RUN_RE = re.compile(r"[^a-z0-9]+")

# Heuristic scan width for header-less files.
MAX_SCANNED_COLUMNS = 50


def normalize_key(key: object) -> str:
    """Header key as compared by the resolver: "Libellé Entité" -> "libelle_entite"."""
    lowered = strip_accents(str(key or "")).lower()
    return _NON_ALNUM_RUN_RE.sub("_", lowered).strip("_")


def positional_key(index: int) -> str:
    return f"col_{index}"


def is_usable(value: object) -> bool:
    """Not None, not NaN, not blank."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return str(value).strip() != ""


def resolve(
    row: Mapping[str, object],
    candidate_names: Iterable[str],
    positions: Iterable[int] = (),
    indicative_values: Iterable[str] = (),
) -> object | None:
    """Find the first usable value for a semantic field.

    Tries, in order: exact candidate keys, normalized candidate keys,
    ``col_<i>`` positions, then a scan of ``col_0..col_49`` for a cell equal
    to one of the indicative values. Returns None when nothing is usable.
    """
    candidates = list(candidate_names)

    for name in candidates:
        value = row.get(name)
        if is_usable(value):
            return value

    normalized_row: dict[str, object] = {}
    for key, value in row.items():
        normalized = normalize_key(key)
        if not is_usable(normalized_row.get(normalized)):
            normalized_row[normalized] = value
    for name in candidates:
        value = normalized_row.get(normalize_key(name))
        if is_usable(value):
            return value

    for index in positions:
        value = row.get(positional_key(index))
        if is_usable(value):
            return value

    indicative = frozenset(indicative_values)
    if indicative:
        for index in range(MAX_SCANNED_COLUMNS):
            value = row.get(positional_key(index))
            if is_usable(value) and str(value).strip() in indicative:
                return value

    return None
