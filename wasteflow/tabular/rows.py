"""Turn a grid of cells into raw rows, shared by every decoder."""

import math
from collections.abc import Sequence
from datetime import date, datetime

from wasteflow.columns.inference import infer_column_positions
from wasteflow.columns.resolver import positional_key
from wasteflow.logging.logger import Log
from wasteflow.tabular.base import DecodedTable, RawRow

HEADER_KEYWORDS: tuple[str, ...] = (
    "code",
    "libelle",
    "libellé",
    "date",
    "quantite",
    "quantité",
    "origine",
    "chapitre",
    "rubrique",
    "fournisseur",
    "chantier",
)
MIN_HEADER_KEYWORDS = 2


def clean_cell(value: object) -> object | None:
    """Map blanks and NaN to None. Text is kept as written, numbers and dates as values."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, datetime | date):
        return value
    # pandas Timestamp and numpy scalars
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime()
    if hasattr(value, "item"):
        return value.item()
    return value


def is_blank_row(cells: Sequence[object]) -> bool:
    return all(clean_cell(cell) is None for cell in cells)


def looks_like_header(first_row: Sequence[object], second_row: Sequence[object] | None) -> bool:
    """First row is a header when it holds at least two typical header words."""
    if second_row is None:
        return False
    if list(first_row) == list(second_row):
        return False
    joined = " ".join(str(cell) for cell in first_row if cell is not None).lower()
    matches = sum(1 for keyword in HEADER_KEYWORDS if keyword in joined)
    return matches >= MIN_HEADER_KEYWORDS


def _header_names(first_row: Sequence[object]) -> list[str]:
    names: list[str] = []
    for index, cell in enumerate(first_row):
        cleaned = clean_cell(cell)
        names.append(str(cleaned).strip() if cleaned is not None else positional_key(index))
    return names


def build_table(grid: Sequence[Sequence[object]], delimiter: str | None = None) -> DecodedTable:
    """Build a DecodedTable from a grid, detecting the header row.

    With a header, rows are keyed by header name; a repeated header keeps the
    last non-empty value. Without one, rows are keyed by ``col_<i>`` and the
    inferred accounting columns get their canonical header as an alias.
    """
    lines = [list(row) for row in grid if not is_blank_row(row)]
    if not lines:
        return DecodedTable(delimiter=delimiter)

    second = lines[1] if len(lines) > 1 else None
    if looks_like_header(lines[0], second):
        headers = _header_names(lines[0])
        return DecodedTable(
            rows=[_keyed_row(headers, line) for line in lines[1:]],
            headers=headers,
            has_header=True,
            delimiter=delimiter,
        )

    width = max(len(line) for line in lines)
    headers = [positional_key(index) for index in range(width)]
    aliases = infer_column_positions(lines)
    for name, position in aliases.items():
        Log.debug(f"Inferred column '{name}' at position {position}")

    rows: list[RawRow] = []
    for line in lines:
        row = _keyed_row(headers, line)
        for name, position in aliases.items():
            row[name] = row.get(positional_key(position))
        rows.append(row)
    return DecodedTable(rows=rows, headers=headers, has_header=False, delimiter=delimiter)


def _keyed_row(headers: Sequence[str], cells: Sequence[object]) -> RawRow:
    row: RawRow = {}
    for index, cell in enumerate(cells):
        key = headers[index] if index < len(headers) else positional_key(index)
        value = clean_cell(cell)
        if key in row and value is None:
            continue
        row[key] = value
    return row
