"""Keyword tier: whole-word pattern matching against the keyword map.

Every pattern word of three letters or more must occur as a whole word in the
normalized label. Among matching entries the one with the most matched words
wins; ties go to the earlier entry, the map being ordered hazardous, inert,
non-hazardous. Override rules then get a chance to correct the winner.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from wasteflow.classification.models import WasteMapEntry
from wasteflow.classification.text import contains_word, normalize_text, significant_words
from wasteflow.classification.waste_map import (
    CLEAN_SOIL_CODE,
    NON_TAR_BITUMEN_CODE,
    TAR_BITUMEN_CODE,
    find_by_code,
)

_NEGATED_POLLUTION_RE = re.compile(r"\bnon (?:pollu|souill|contamin)\w*")
_POLLUTION_RE = re.compile(r"\b(?:pollu|souill|contamin|hydrocarbur)\w*")

_NEGATED_TAR_RE = re.compile(
    r"\b(?:ne contenant pas (?:de |du )?|sans |non )goudron\w*"
)
_TAR_RE = re.compile(r"\b(?:goudron\w*|hap|ancien\w*|vieux|vieil\w*)\b")


@dataclass(frozen=True)
class KeywordMatch:
    entry: WasteMapEntry
    specificity: int


def _pattern_specificity(normalized_text: str, pattern: str) -> int:
    words = significant_words(pattern)
    if not words:
        return 0
    if all(contains_word(normalized_text, word) for word in words):
        return len(words)
    return 0


def find_candidates(normalized_text: str, waste_map: Sequence[WasteMapEntry]) -> list[KeywordMatch]:
    """All entries with at least one fully matching pattern, in map order."""
    candidates: list[KeywordMatch] = []
    for entry in waste_map:
        specificity = max(
            (_pattern_specificity(normalized_text, pattern) for pattern in entry.patterns),
            default=0,
        )
        if specificity > 0:
            candidates.append(KeywordMatch(entry=entry, specificity=specificity))
    return candidates


def best_candidate(candidates: Sequence[KeywordMatch]) -> KeywordMatch | None:
    best: KeywordMatch | None = None
    for candidate in candidates:
        if best is None or candidate.specificity > best.specificity:
            best = candidate
    return best


def has_pollution_indicator(normalized_text: str) -> bool:
    return _POLLUTION_RE.search(_NEGATED_POLLUTION_RE.sub(" ", normalized_text)) is not None


def has_tar_indicator(normalized_text: str) -> bool:
    return _TAR_RE.search(_NEGATED_TAR_RE.sub(" ", normalized_text)) is not None


class OverrideRule(ABC):
    """Post-selection correction of the best keyword match."""

    @abstractmethod
    def apply(
        self,
        normalized_text: str,
        best: KeywordMatch,
        candidates: Sequence[KeywordMatch],
        waste_map: Sequence[WasteMapEntry],
    ) -> KeywordMatch | None:
        raise NotImplementedError


class PollutedSoilOverride(OverrideRule):
    """Never leave visibly polluted material classified as clean soil."""

    def apply(self, normalized_text, best, candidates, waste_map):
        if best.entry.code.code != CLEAN_SOIL_CODE or not has_pollution_indicator(normalized_text):
            return best
        remaining = [c for c in candidates if c.entry.code.code != CLEAN_SOIL_CODE]
        return best_candidate(remaining)


class TarBitumenOverride(OverrideRule):
    """Upgrade bituminous mixtures to the tar-bearing entry on tar indicators."""

    def apply(self, normalized_text, best, candidates, waste_map):
        if best.entry.code.code != NON_TAR_BITUMEN_CODE or not has_tar_indicator(normalized_text):
            return best
        if any(c.entry.code.code == TAR_BITUMEN_CODE for c in candidates):
            return best
        tar_entry = find_by_code(TAR_BITUMEN_CODE, tuple(waste_map))
        if tar_entry is None:
            return best
        return KeywordMatch(entry=tar_entry, specificity=best.specificity)


class TarNegationOverride(OverrideRule):
    """Downgrade a tar-bearing match when the label explicitly denies tar."""

    def apply(self, normalized_text, best, candidates, waste_map):
        if best.entry.code.code != TAR_BITUMEN_CODE or not _NEGATED_TAR_RE.search(normalized_text):
            return best
        if has_tar_indicator(normalized_text):
            return best
        bitumen_entry = find_by_code(NON_TAR_BITUMEN_CODE, tuple(waste_map))
        if bitumen_entry is None:
            return best
        return KeywordMatch(entry=bitumen_entry, specificity=best.specificity)


OVERRIDE_RULES: tuple[OverrideRule, ...] = (
    PollutedSoilOverride(),
    TarNegationOverride(),
    TarBitumenOverride(),
)


def match_keywords(
    label: str | None,
    waste_map: Sequence[WasteMapEntry],
    rules: Sequence[OverrideRule] = OVERRIDE_RULES,
) -> WasteMapEntry | None:
    """Most specific keyword-map entry for the label, after override rules."""
    normalized_text = normalize_text(label)
    if not normalized_text:
        return None
    candidates = find_candidates(normalized_text, waste_map)
    best = best_candidate(candidates)
    for rule in rules:
        if best is None:
            break
        best = rule.apply(normalized_text, best, candidates, waste_map)
    return best.entry if best is not None else None
