"""Accounting vocabulary of the cost-accounting exports.

Values are compared literally: they are the exact strings the accounting
system writes, including case and spacing.
"""

PERSONNEL_TIMESHEET_ORIGIN = "Pointage personnel"

ORIGIN_VALUES: tuple[str, ...] = (
    "Pointage personnel",
    "Pointage matériel",
    "Réception",
    "Ecarts",
)

ALLOWED_CHAPTERS: tuple[str, ...] = (
    "MATERIAUX & CONSOMMABLES",
    "MATERIEL",
    "S/T & PRESTATAIRES",
    "S/T PRODUITS NON SOUMIS A FGX",
)

EXCLUDED_SUB_CHAPTERS: tuple[str, ...] = (
    "ACIERS",
    "CONSOMMABLES",
    "FRAIS ANNEXES MATERIEL",
)

ALLOWED_RUBRICS: tuple[str, ...] = (
    "Agregats",
    "AMENAGT ESPACES VERT",
    "Autres prestations",
    "Balisage",
    "Enrobes a froid",
    "Fraisat",
    "Loc camions",
    "Loc int. camions",
    "Loc int. mat transport",
    "Loc materiel de transport",
    "Loc materiel divers",
    "Materiaux divers",
    "Materiaux recycles",
    "Mise decharge materiaux divers",
    "Prestation environnement",
    "Produits de voirie",
    "SABLE",
    "Sous traitance tiers",
    "STPD tiers",
    "Traitement dechets inertes",
)
