from collections.abc import Iterable, Iterator

from wasteflow.classification.models import SOURCE_PRIORITY, CorrespondenceEntry, Source
from wasteflow.classification.text import contains_phrase, normalize_text


def _ordered(entries: Iterable[CorrespondenceEntry], source: Source | None) -> Iterator[CorrespondenceEntry]:
    """Declared source first, then every source in priority order."""
    entries = tuple(entries)
    if source is not None:
        yield from (entry for entry in entries if entry.source == source)
    for priority_source in SOURCE_PRIORITY:
        if priority_source == source:
            continue
        yield from (entry for entry in entries if entry.source == priority_source)


def term_matches(normalized_label: str, normalized_term: str) -> bool:
    """Containment in either direction between label and term.

    A label found inside a longer term only counts when it covers at least
    half of the term, so a lone "beton" does not pick up
    "beton bitumineux contenant du goudron".
    """
    if not normalized_label or not normalized_term:
        return False
    if contains_phrase(normalized_label, normalized_term):
        return True
    return len(normalized_label) * 2 >= len(normalized_term) and contains_phrase(
        normalized_term, normalized_label
    )


def find_correspondence(
    label: str | None,
    source: Source | None,
    entries: Iterable[CorrespondenceEntry],
) -> CorrespondenceEntry | None:
    """First correspondence entry whose term matches the label, or None."""
    normalized_label = normalize_text(label)
    if not normalized_label:
        return None
    for entry in _ordered(entries, source):
        if term_matches(normalized_label, normalize_text(entry.matched_term)):
            return entry
    return None
