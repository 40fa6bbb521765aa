"""Cell value parsing: labels, dates, quantities, units."""

import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_NBSP = "\u00a0"
_MULTI_SPACE_RE = re.compile(r"\s{2,}")
_DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[ T].*)?$")

EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_MIN = 59
EXCEL_SERIAL_MAX = 60000

QUANTITY_PLACES = Decimal("0.001")

DEFAULT_UNIT = "T"
_UNIT_ALIASES: dict[str, str] = {
    "t": "T",
    "to": "T",
    "ton": "T",
    "tonne": "T",
    "tonnes": "T",
    "m3": "m³",
    "m³": "m³",
    "mc": "m³",
    "l": "L",
    "litre": "L",
    "litres": "L",
}


def clean_label(value: object | None) -> str:
    """NBSP to space, trim, collapse inner whitespace. None becomes ''."""
    if value is None:
        return ""
    text = str(value).replace(_NBSP, " ").strip()
    return _MULTI_SPACE_RE.sub(" ", text)


def optional_label(value: object | None) -> str | None:
    text = clean_label(value)
    return text or None


def parse_operation_date(value: object | None) -> date | None:
    """Accepts date objects, Excel serial numbers, dd/mm/yyyy and yyyy-mm-dd."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return _from_excel_serial(float(value))

    text = clean_label(value)
    if not text:
        return None
    try:
        return _from_excel_serial(float(text.replace(",", ".")))
    except ValueError:
        pass

    match = _DMY_RE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_date(year, month, day)
    match = _ISO_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)
    return None


def _from_excel_serial(serial: float) -> date | None:
    if not EXCEL_SERIAL_MIN < serial < EXCEL_SERIAL_MAX:
        return None
    return EXCEL_EPOCH + timedelta(days=int(serial))


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_quantity(value: object | None) -> Decimal | None:
    """Non-negative quantity rounded half-up to 3 decimals, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        text = repr(value)
    else:
        text = str(value).replace(_NBSP, "").replace(" ", "").replace(",", ".").strip()
    if not text:
        return None
    try:
        quantity = Decimal(text)
    except InvalidOperation:
        return None
    if not quantity.is_finite() or quantity < 0:
        return None
    return quantity.quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def normalize_unit(value: object | None) -> str:
    """Canonical unit symbol; tonnes when absent or unknown."""
    key = clean_label(value).lower().rstrip(".")
    if not key:
        return DEFAULT_UNIT
    return _UNIT_ALIASES.get(key, clean_label(value))
