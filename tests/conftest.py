import io

import pandas as pd
import pytest

LEDGER_HEADERS = [
    "Code Entité",
    "Libellé Entité",
    "Code Chantier",
    "Libellé Chantier",
    "Date",
    "Origine",
    "Libellé Ressource",
    "Code Fournisseur",
    "Libellé Fournisseur",
    "Quantité",
    "Unité",
    "Libellé Chapitre Comptable",
    "Libellé Sous-chapitre Comptable",
    "Libellé Rubrique Comptable",
]


def _ledger_row(resource: str, quantity: str, chapter: str = "S/T & PRESTATAIRES") -> list[str]:
    return [
        "E01",
        "Agence Nord",
        "C100",
        "Chantier RD 12",
        "12/03/2024",
        "Réception",
        resource,
        "F9",
        "Recyclage Sud",
        quantity,
        "T",
        chapter,
        "",
        "Traitement dechets inertes",
    ]


# Six rows: classified, duplicate of the first after rounding, rental,
# outside the accounting perimeter, invalid quantity, no classification.
LEDGER_ROWS = [
    _ledger_row("Béton", "12,3401"),
    _ledger_row("Béton", "12,340"),
    _ledger_row("LOC SCIE A SOL", "1"),
    _ledger_row("Gravats", "4", chapter="PERSONNEL"),
    _ledger_row("Enrobé", "abc"),
    _ledger_row("Concassé 0/31.5", "8"),
]


def _delimited_bytes(rows: list[list[str]], delimiter: str = ";", header: bool = True) -> bytes:
    lines = [LEDGER_HEADERS] if header else []
    lines.extend(rows)
    return "\r\n".join(delimiter.join(cells) for cells in lines).encode("utf-8")


@pytest.fixture()
def ledger_csv_bytes() -> bytes:
    """Semicolon-separated ledger export with a header row."""
    return _delimited_bytes(LEDGER_ROWS)


@pytest.fixture()
def headerless_tsv_bytes() -> bytes:
    """Tab-separated ledger export without a header row."""
    return _delimited_bytes(LEDGER_ROWS, delimiter="\t", header=False)


@pytest.fixture()
def ledger_xlsx_bytes() -> bytes:
    """The same ledger as a single-sheet workbook."""
    buf = io.BytesIO()
    df = pd.DataFrame(LEDGER_ROWS, columns=LEDGER_HEADERS)
    df.to_excel(buf, index=False, engine="openpyxl")
    return buf.getvalue()
