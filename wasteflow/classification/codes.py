"""Waste classification codes and the asterisk hazard convention.

A code is written as three two-digit groups ("17 03 02", "170302",
"17-03-02"); a trailing or embedded asterisk ("13 02 05*") marks it as
hazardous. The asterisk is parsed here, once, into ``WasteCode`` and never
travels further as text.
"""

import re
from dataclasses import dataclass

from wasteflow.classification.exceptions import InvalidWasteCodeError

_SEPARATORS_RE = re.compile(r"[\s\-]")

# Three groups at the very end of the label, optionally followed by the hazard
# marker. The boundary before the first group keeps product references such as
# "600X600 B125" out.
_TRAILING_CODE_RE = re.compile(
    r"(?:^|[\s_\-])"
    r"(?P<g1>\d{2})(?P<sep>[\s\-]?)(?P<g2>\d{2})(?P=sep)(?P<g3>\d{2})"
    r"\s*(?P<marker>\*?)\s*$"
)
_SPACED_CODE_RE = re.compile(
    r"(?:^|[\s_\-])(?P<g1>\d{2})\s+(?P<g2>\d{2})\s+(?P<g3>\d{2})\s*(?P<marker>\*?)\s*$"
)

_VALID_FIRST_DIGITS = frozenset("12")


@dataclass(frozen=True)
class WasteCode:
    """Six-digit code plus the hazard marker that accompanied it."""

    code: str
    hazardous_marker: bool = False

    def display(self) -> str:
        """Human form: "13 02 05*"."""
        spaced = f"{self.code[0:2]} {self.code[2:4]} {self.code[4:6]}"
        return f"{spaced}*" if self.hazardous_marker else spaced


def has_hazard_marker(text: str | None) -> bool:
    """True when the text carries the asterisk hazard convention."""
    if not text:
        return False
    return "*" in text.strip()


def parse_code(text: str) -> WasteCode:
    """Parse a written code ("13 02 05*", "130205", "13-02-05") into a WasteCode.

    Raises:
        InvalidWasteCodeError: if the text does not hold exactly six digits.
    """
    stripped = (text or "").strip()
    digits = _SEPARATORS_RE.sub("", stripped.replace("*", ""))
    if len(digits) != 6 or not digits.isdigit():
        raise InvalidWasteCodeError(f"Not a six-digit waste code: {text!r}")
    return WasteCode(code=digits, hazardous_marker=has_hazard_marker(stripped))


def extract_code(label: str | None) -> WasteCode | None:
    """Extract an explicit code terminating the label, or None.

    Accepted: "Enrobé 17 03 02", "GRAVATS_170107", "Huile-13-02-05*".
    The first digit must be 1 or 2; anything after the code other than the
    hazard marker rejects the match.
    """
    if not label:
        return None
    text = str(label)
    for pattern in (_SPACED_CODE_RE, _TRAILING_CODE_RE):
        match = pattern.search(text)
        if match is None:
            continue
        if match.group("g1")[0] not in _VALID_FIRST_DIGITS:
            continue
        code = match.group("g1") + match.group("g2") + match.group("g3")
        return WasteCode(code=code, hazardous_marker=bool(match.group("marker")))
    return None
