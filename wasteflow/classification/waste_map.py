"""Keyword map: pattern phrases identifying each tracked waste type.

Patterns are written the way they appear on site exports; they are
normalized (accents, case, punctuation) before matching, and only their
words of three letters or more take part in the match.
"""

from wasteflow.classification.codes import parse_code
from wasteflow.classification.models import CATEGORY_PRIORITY, WasteCategory, WasteMapEntry


def _entry(patterns: list[str], label: str, code: str, category: WasteCategory) -> WasteMapEntry:
    return WasteMapEntry(
        patterns=tuple(patterns),
        label=label,
        code=parse_code(code),
        category=category,
    )


CLEAN_SOIL_CODE = "170504"
NON_TAR_BITUMEN_CODE = "170302"
TAR_BITUMEN_CODE = "170301"

_INERT = WasteCategory.INERT
_NON_HAZARDOUS = WasteCategory.NON_HAZARDOUS
_HAZARDOUS = WasteCategory.HAZARDOUS

_DECLARED_ENTRIES: tuple[WasteMapEntry, ...] = (
    _entry(
        [
            "terre et cailloux non pollués",
            "terre non polluée",
            "terres non polluées",
            "cailloux non pollués",
            "déblais",
            "déblai",
        ],
        "Terre et cailloux non pollués",
        "17 05 04",
        _INERT,
    ),
    _entry(
        [
            "mélange bitumineux ne contenant pas de goudron",
            "mélanges bitumineux ne contenant pas de goudron",
            "enrobé à froid",
            "enrobés à froid",
            "enrobé",
            "enrobés",
            "fraisat",
            "fraisats",
        ],
        "Mélanges bitumineux ne contenant pas de goudron",
        "17 03 02",
        _INERT,
    ),
    _entry(["béton", "bétons"], "Béton", "17 01 01", _INERT),
    _entry(
        ["gravats", "gravat", "gravats inertes", "déchets inertes"],
        "Mélanges de béton, briques, tuiles et céramiques",
        "17 01 07",
        _INERT,
    ),
    _entry(
        ["ferraille", "ferrailles", "acier", "aciers", "métaux ferreux"],
        "Ferraille",
        "17 04 07",
        _NON_HAZARDOUS,
    ),
    _entry(["bois"], "Bois", "17 02 01", _NON_HAZARDOUS),
    _entry(
        ["pvc", "polyéthylène", "plastique", "plastiques"],
        "PVC / PE / Plastique",
        "17 02 03",
        _NON_HAZARDOUS,
    ),
    _entry(
        ["dib", "déchet industriel banal", "déchets industriels banals"],
        "DIB",
        "17 09 04",
        _NON_HAZARDOUS,
    ),
    _entry(["carton", "cartons", "papier", "papiers"], "Carton / Papier", "20 01 01", _NON_HAZARDOUS),
    _entry(["verre", "vitrage"], "Verre", "15 01 07", _NON_HAZARDOUS),
    _entry(
        ["déchets verts", "branchage", "branchages", "élagage", "tonte"],
        "Déchets verts",
        "20 02 01",
        _NON_HAZARDOUS,
    ),
    _entry(
        [
            "déchets municipaux en mélange",
            "déchets ménagers mélange",
            "tout venant ménager",
        ],
        "Déchets municipaux en mélange",
        "20 03 01",
        _NON_HAZARDOUS,
    ),
    _entry(
        [
            "huile noire",
            "huiles noires",
            "huile de vidange",
            "huile noire usagée",
            "huile moteur",
            "huile boite de vitesse",
        ],
        "Huile moteur / boîte de vitesse usagée",
        "13 02 05*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "séparateur hydrocarbures",
            "séparateur hydrocarbure",
            "boue hydrocarburée",
            "boues hydrocarburées",
            "mélange eau et boue des séparateurs",
        ],
        "Mélange eau et boue des séparateurs à hydrocarbures",
        "13 05 08*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "produit fontaine à solvant",
            "fontaine dégraissage",
            "fontaine de dégraissage",
        ],
        "Produit fontaine dégraissage",
        "14 06 03*",
        _HAZARDOUS,
    ),
    _entry(["solvant non chloré", "solvants non chlorés"], "Solvant non chloré", "07 01 04*", _HAZARDOUS),
    _entry(["solvant chloré", "solvants chlorés"], "Solvant chloré", "14 06 02*", _HAZARDOUS),
    _entry(
        [
            "emballages souillés",
            "emballage souillé",
            "bidon marline",
            "emballages ayant contenu un produit dangereux",
            "bidons souillés",
        ],
        "Emballages souillés",
        "15 01 10*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "absorbant souillé",
            "absorbants souillés",
            "chiffons souillés",
            "flexible hydraulique",
            "epi souillé",
            "epi souillés",
            "epi contaminé amiante",
            "epi amiante",
            "epi dangereux",
        ],
        "Absorbants, EPI souillés aux produits dangereux (y compris amiante)",
        "15 02 02*",
        _HAZARDOUS,
    ),
    _entry(
        ["filtre à huile", "filtres à huile", "filtre huile", "filtre à carburant", "filtre carburant"],
        "Filtres à huile",
        "16 01 07*",
        _HAZARDOUS,
    ),
    _entry(
        ["liquide de refroidissement", "liquide refroidissement", "antigel usagé"],
        "Liquide refroidissement / antigel usagés",
        "16 01 14*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "deee",
            "déchets électriques",
            "déchets électroniques",
            "équipements électriques électroniques",
        ],
        "Déchets électriques, électroniques - DEEE",
        "16 02 13*",
        _HAZARDOUS,
    ),
    _entry(["aérosol", "aérosols", "bombes aérosols"], "Aérosols", "16 05 04*", _HAZARDOUS),
    _entry(
        ["batterie plomb", "batteries plomb", "batterie au plomb", "batteries au plomb"],
        "Batteries au plomb",
        "16 06 01*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "mélange bitumineux contenant du goudron",
            "béton bitumineux contenant du goudron",
            "enrobé goudron",
            "enrobés goudronnés",
            "enrobé pollué",
            "enrobés pollués",
            "enrobé hap",
        ],
        "Mélanges bitumineux contenant du goudron",
        "17 03 01*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "terre souillée",
            "terres souillées",
            "terre polluée",
            "terres polluées",
            "sol pollué",
            "sols pollués",
        ],
        "Terre souillée",
        "17 05 03*",
        _HAZARDOUS,
    ),
    _entry(
        [
            "amiante",
            "amianté",
            "amiantés",
            "amiantée",
            "amiantées",
            "fibrociment",
            "amiante ciment",
        ],
        "Matériaux amiantés",
        "17 06 05*",
        _HAZARDOUS,
    ),
    _entry(
        ["piles", "accumulateurs", "pile lithium", "pile bouton"],
        "Piles et accumulateurs",
        "20 01 33*",
        _HAZARDOUS,
    ),
)

# Stable sort: declaration order breaks ties inside a category.
WASTE_MAP: tuple[WasteMapEntry, ...] = tuple(
    sorted(_DECLARED_ENTRIES, key=lambda entry: CATEGORY_PRIORITY[entry.category])
)


def find_by_code(code: str, waste_map: tuple[WasteMapEntry, ...] = WASTE_MAP) -> WasteMapEntry | None:
    """First keyword-map entry carrying this six-digit code."""
    for entry in waste_map:
        if entry.code.code == code:
            return entry
    return None
