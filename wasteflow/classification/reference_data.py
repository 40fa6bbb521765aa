import csv
import io
import threading
from dataclasses import dataclass
from pathlib import Path

from wasteflow.classification.codes import parse_code
from wasteflow.classification.exceptions import InvalidWasteCodeError, ReferenceDataError
from wasteflow.classification.models import CorrespondenceEntry, Source, WasteMapEntry
from wasteflow.classification.waste_map import WASTE_MAP
from wasteflow.logging.logger import Log

_DEFAULT_DATA_DIR = Path(__file__).parent / "data"

_REQUIRED_COLUMNS = ("source", "term", "formulation", "code", "danger")

_SOURCE_ALIASES: dict[str, Source] = {
    "atelier": Source.WORKSHOP,
    "workshop": Source.WORKSHOP,
    "labo": Source.LAB,
    "laboratoire": Source.LAB,
    "lab": Source.LAB,
    "depot": Source.DEPOT,
    "dépôt": Source.DEPOT,
}

_TRUTHY = frozenset({"vrai", "true", "1", "oui", "yes"})


@dataclass(frozen=True)
class ReferenceTables:
    """Immutable snapshot of the static lookup tables."""

    correspondence: tuple[CorrespondenceEntry, ...]
    waste_map: tuple[WasteMapEntry, ...]


def parse_source(value: str) -> Source:
    """Map a source token ("ATELIER", "lab", ...) to a Source.

    Raises:
        ValueError: if the token is not a known source.
    """
    key = value.strip().lower()
    if key in _SOURCE_ALIASES:
        return _SOURCE_ALIASES[key]
    return Source(key)


def parse_correspondence_csv(text: str) -> tuple[CorrespondenceEntry, ...]:
    """Parse correspondence rows from CSV text.

    Columns: source, term, formulation, code, danger. Rows keep file order.

    Raises:
        ReferenceDataError: on a missing column, unknown source or invalid code.
    """
    reader = csv.DictReader(io.StringIO(text))
    missing = [name for name in _REQUIRED_COLUMNS if name not in (reader.fieldnames or [])]
    if missing:
        raise ReferenceDataError(f"Correspondence table is missing columns: {', '.join(missing)}")

    entries: list[CorrespondenceEntry] = []
    for line_number, row in enumerate(reader, start=2):
        term = (row["term"] or "").strip()
        if not term:
            continue
        try:
            entry = CorrespondenceEntry(
                source=parse_source(row["source"] or ""),
                matched_term=term,
                catalogued_formulation=(row["formulation"] or "").strip(),
                code=parse_code(row["code"] or ""),
                hazardous=(row["danger"] or "").strip().lower() in _TRUTHY,
            )
        except (ValueError, InvalidWasteCodeError) as exc:
            raise ReferenceDataError(f"Invalid correspondence row at line {line_number}: {exc}") from exc
        entries.append(entry)
    return tuple(entries)


def load_correspondence_table(path: Path | None = None) -> tuple[CorrespondenceEntry, ...]:
    """Load the correspondence table from a CSV file.

    Args:
        path: Path to the CSV file.
              Defaults to the bundled correspondence_table.csv.

    Raises:
        ReferenceDataError: if the file cannot be read or parsed.
    """
    if path is None:
        path = _DEFAULT_DATA_DIR / "correspondence_table.csv"
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ReferenceDataError(f"Failed to load correspondence table: {exc}") from exc
    return parse_correspondence_csv(text)


_lock = threading.Lock()
_tables: ReferenceTables | None = None


def get_reference_tables() -> ReferenceTables:
    """Return the process-wide tables, loading the bundled ones on first use."""
    global _tables  # noqa: PLW0603
    tables = _tables
    if tables is not None:
        return tables
    with _lock:
        if _tables is None:
            _tables = ReferenceTables(
                correspondence=load_correspondence_table(),
                waste_map=WASTE_MAP,
            )
        return _tables


def reload_reference_tables(path: Path | None = None) -> ReferenceTables:
    """Load a fresh snapshot and swap it in whole.

    Readers holding the previous snapshot keep using it; the swap is a single
    reference assignment.
    """
    global _tables  # noqa: PLW0603
    fresh = ReferenceTables(
        correspondence=load_correspondence_table(path),
        waste_map=WASTE_MAP,
    )
    with _lock:
        _tables = fresh
    Log.info(f"Reference tables loaded: {len(fresh.correspondence)} correspondence entries")
    return fresh
