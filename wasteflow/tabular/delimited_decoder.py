import csv
import io

from wasteflow.tabular.base import BaseTableDecoder, DecodedTable
from wasteflow.tabular.exceptions import EmptyTableError, TableDecodeError
from wasteflow.tabular.rows import build_table

CANDIDATE_DELIMITERS: tuple[str, ...] = ("\t", ";", ",")
DEFAULT_DELIMITER = "\t"
TEXT_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252")


def decode_text(data: bytes) -> str:
    """Decode as UTF-8 (BOM tolerated), falling back to Windows-1252."""
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise TableDecodeError("Source file is neither UTF-8 nor Windows-1252 text")


def detect_delimiter(first_line: str) -> str:
    """Most frequent of tab, semicolon, comma in the first line; tab if none."""
    counts = {delimiter: first_line.count(delimiter) for delimiter in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda delimiter: counts[delimiter])
    return best if counts[best] > 0 else DEFAULT_DELIMITER


class DelimitedTableDecoder(BaseTableDecoder):
    """Tab, semicolon or comma separated text with an optional header row."""

    def decode(self, data: bytes) -> DecodedTable:
        text = decode_text(data).replace("\r\n", "\n").replace("\r", "\n")
        first_line = next((line for line in text.split("\n") if line.strip()), "")
        if not first_line:
            raise EmptyTableError("Source file holds no rows")

        delimiter = detect_delimiter(first_line)
        try:
            grid = list(csv.reader(io.StringIO(text, newline=""), delimiter=delimiter))
        except csv.Error as exc:
            raise TableDecodeError(f"Malformed delimited file: {exc}") from exc

        table = build_table(grid, delimiter=delimiter)
        if not table.rows:
            raise EmptyTableError("Source file holds no data rows")
        return table
