"""Canonical fields and the header spellings each one is known under."""

from collections.abc import Mapping
from dataclasses import dataclass

from wasteflow.columns.resolver import resolve
from wasteflow.rules.accounting import ALLOWED_CHAPTERS, ALLOWED_RUBRICS, ORIGIN_VALUES


@dataclass(frozen=True)
class ColumnSpec:
    candidates: tuple[str, ...]
    positions: tuple[int, ...] = ()
    indicative_values: tuple[str, ...] = ()

    def resolve(self, row: Mapping[str, object]) -> object | None:
        return resolve(row, self.candidates, self.positions, self.indicative_values)


ORIGIN_HEADER = "Origine"
CHAPTER_HEADER = "Libellé Chapitre Comptable"
SUB_CHAPTER_HEADER = "Libellé Sous-chapitre Comptable"
RUBRIC_HEADER = "Libellé Rubrique Comptable"

ENTITY_CODE = ColumnSpec(("Code Entité", "Code Entite", "code_entite"), positions=(0,))
ENTITY_LABEL = ColumnSpec(("Libellé Entité", "Libelle Entite"), positions=(1,))
SITE_CODE = ColumnSpec(("Code Chantier", "code_chantier"), positions=(2, 3))
SITE_LABEL = ColumnSpec(("Libellé Chantier", "Libelle Chantier"), positions=(4,))
OPERATION_DATE = ColumnSpec(("Date", "date expédition", "date_expedition"), positions=(5,))
ORIGIN = ColumnSpec((ORIGIN_HEADER,), positions=(6, 7, 8), indicative_values=ORIGIN_VALUES)
RESOURCE_LABEL = ColumnSpec(
    ("Libellé Ressource", "Libelle Ressource", "Libellé Article", "Libelle Article", "Ressource")
)
SUPPLIER_LABEL = ColumnSpec(("Libellé Fournisseur", "Libelle Fournisseur", "Fournisseur"))
SUPPLIER_CODE = ColumnSpec(("Code Fournisseur", "code_fournisseur"))
QUANTITY = ColumnSpec(("Quantité", "Quantite", "Quantité T", "Quantite T"))
UNIT = ColumnSpec(("Unité", "Unite"))
CHAPTER_LABEL = ColumnSpec(
    (CHAPTER_HEADER, "Libelle Chapitre Comptable", "chapitre comptable"),
    positions=(11, 13, 15, 17, 19),
    indicative_values=ALLOWED_CHAPTERS,
)
SUB_CHAPTER_LABEL = ColumnSpec(
    (SUB_CHAPTER_HEADER, "Libelle Sous-chapitre Comptable", "sous-chapitre comptable"),
    positions=(12, 14, 16, 18, 20),
)
RUBRIC_LABEL = ColumnSpec(
    (RUBRIC_HEADER, "Libelle Rubrique Comptable", "rubrique comptable"),
    positions=(10, 11, 14, 15, 17, 18),
    indicative_values=ALLOWED_RUBRICS,
)
CHAPTER_CODE = ColumnSpec(("Code Chapitre Comptable", "code_chapitre_comptable"))
SUB_CHAPTER_CODE = ColumnSpec(("Code Sous-chapitre Comptable", "code_sous_chapitre_comptable"))
RUBRIC_CODE = ColumnSpec(("Code Rubrique Comptable", "code_rubrique_comptable"))


@dataclass(frozen=True)
class CanonicalFields:
    """Semantic projection of a raw row. Values stay raw (str, number, date)."""

    entity_code: object | None = None
    entity_label: object | None = None
    site_code: object | None = None
    site_label: object | None = None
    resource_label: object | None = None
    quantity: object | None = None
    unit: object | None = None
    supplier_code: object | None = None
    supplier_label: object | None = None
    operation_date: object | None = None
    chapter_label: object | None = None
    chapter_code: object | None = None
    sub_chapter_label: object | None = None
    sub_chapter_code: object | None = None
    rubric_label: object | None = None
    rubric_code: object | None = None
    origin: object | None = None


def canonical_fields(row: Mapping[str, object]) -> CanonicalFields:
    """Resolve every canonical field of a raw row."""
    return CanonicalFields(
        entity_code=ENTITY_CODE.resolve(row),
        entity_label=ENTITY_LABEL.resolve(row),
        site_code=SITE_CODE.resolve(row),
        site_label=SITE_LABEL.resolve(row),
        resource_label=RESOURCE_LABEL.resolve(row),
        quantity=QUANTITY.resolve(row),
        unit=UNIT.resolve(row),
        supplier_code=SUPPLIER_CODE.resolve(row),
        supplier_label=SUPPLIER_LABEL.resolve(row),
        operation_date=OPERATION_DATE.resolve(row),
        chapter_label=CHAPTER_LABEL.resolve(row),
        chapter_code=CHAPTER_CODE.resolve(row),
        sub_chapter_label=SUB_CHAPTER_LABEL.resolve(row),
        sub_chapter_code=SUB_CHAPTER_CODE.resolve(row),
        rubric_label=RUBRIC_LABEL.resolve(row),
        rubric_code=RUBRIC_CODE.resolve(row),
        origin=ORIGIN.resolve(row),
    )
