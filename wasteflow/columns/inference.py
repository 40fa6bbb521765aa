"""Column position inference for delimited files without a header row."""

from collections.abc import Sequence

from wasteflow.columns.canonical import (
    CHAPTER_HEADER,
    ORIGIN_HEADER,
    RUBRIC_HEADER,
    SUB_CHAPTER_HEADER,
)

SAMPLE_SIZE = 10
MATCH_RATIO = 0.3

# Tokens typical of each accounting column. A cell matches when it equals a
# token or contains it.
INDICATIVE_TOKENS: dict[str, tuple[str, ...]] = {
    ORIGIN_HEADER: ("Pointage personnel", "Pointage matériel", "Réception", "Ecarts"),
    CHAPTER_HEADER: (
        "MATERIEL",
        "MATERIAUX & CONSOMMABLES",
        "S/T & PRESTATAIRES",
        "S/T PRODUITS NON SOUMIS A FGX",
        "PERSONNEL",
    ),
    SUB_CHAPTER_HEADER: (
        "MATERIEL PROPRE",
        "MATERIEL LOUE",
        "MAIN D'OEUVRE  HORAIRE",
        "ENCADREMENT",
        "BETONS, MORTIERS, AGREGATS",
        "CONSOMMABLES",
    ),
    RUBRIC_HEADER: (
        "Loc camions",
        "Loc int. camions",
        "Loc materiel de transport",
        "Loc materiel divers",
        "Ciments & mortiers",
        "SABLE",
        "Agregats",
        "Autres prestations",
    ),
}


def _cell_matches(cell: object, tokens: Sequence[str]) -> bool:
    if cell is None:
        return False
    value = str(cell).strip()
    if not value:
        return False
    return any(value == token or token in value for token in tokens)


def infer_column_positions(sample_rows: Sequence[Sequence[object]]) -> dict[str, int]:
    """Guess where the accounting columns sit in header-less rows.

    For each column kind, the first position where at least 30 % of the first
    ten rows hold an indicative token wins. Kinds with no such position are
    left out. Never raises.
    """
    rows = list(sample_rows[:SAMPLE_SIZE])
    if not rows:
        return {}
    width = max(len(row) for row in rows)
    threshold = len(rows) * MATCH_RATIO

    positions: dict[str, int] = {}
    for header, tokens in INDICATIVE_TOKENS.items():
        for index in range(width):
            matches = sum(
                1 for row in rows if index < len(row) and _cell_matches(row[index], tokens)
            )
            if matches > 0 and matches >= threshold:
                positions[header] = index
                break
    return positions
