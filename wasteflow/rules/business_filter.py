from dataclasses import dataclass

from wasteflow.columns.canonical import CanonicalFields
from wasteflow.rules.accounting import (
    ALLOWED_CHAPTERS,
    ALLOWED_RUBRICS,
    EXCLUDED_SUB_CHAPTERS,
    PERSONNEL_TIMESHEET_ORIGIN,
)


def _stripped(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def passes(canonical: CanonicalFields) -> bool:
    """Cost-accounting perimeter check. A row is kept only if all hold:

    1. origin is not the personnel timesheet;
    2. chapter is one of the allowed chapters;
    3. sub-chapter, when present, is not an excluded one;
    4. rubric is exactly one of the allowed rubrics, compared as written.
    """
    if _stripped(canonical.origin) == PERSONNEL_TIMESHEET_ORIGIN:
        return False

    chapter = _stripped(canonical.chapter_label)
    if chapter is None or chapter not in ALLOWED_CHAPTERS:
        return False

    sub_chapter = _stripped(canonical.sub_chapter_label)
    if sub_chapter is not None and sub_chapter in EXCLUDED_SUB_CHAPTERS:
        return False

    rubric = canonical.rubric_label
    if rubric is None:
        return False
    return isinstance(rubric, str) and rubric in ALLOWED_RUBRICS


@dataclass(frozen=True)
class FilterValues:
    origin: str | None
    chapter: str | None
    sub_chapter: str | None
    rubric: str | None
    passes: bool


def filter_values(canonical: CanonicalFields) -> FilterValues:
    """The values the filter looked at, with its verdict. For debug logging."""
    return FilterValues(
        origin=_stripped(canonical.origin),
        chapter=_stripped(canonical.chapter_label),
        sub_chapter=_stripped(canonical.sub_chapter_label),
        rubric=None if canonical.rubric_label is None else str(canonical.rubric_label),
        passes=passes(canonical),
    )
