import re
import threading

import icu  # type: ignore[import-untyped]

# Accents and ligatures to plain ASCII (é -> e, œ -> oe), case kept.
_ICU_TRANSFORM = "Any-Latin; Latin-ASCII"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_SPACES_RE = re.compile(r"\s+")

# One transliterator per thread, pool workers never share an instance.
_local = threading.local()


def _transliterator() -> icu.Transliterator:
    instance = getattr(_local, "transliterator", None)
    if instance is None:
        instance = icu.Transliterator.createInstance(_ICU_TRANSFORM)
        _local.transliterator = instance
    return instance


def strip_accents(text: str) -> str:
    """Transliterate to ASCII, keeping case ("Façade" -> "Facade", "Œuvre" -> "Oeuvre")."""
    return _transliterator().transliterate(text)


def normalize_text(text: str | None) -> str:
    """Lower-case, accent-free, punctuation-as-space text used for matching."""
    if not text:
        return ""
    lowered = strip_accents(str(text)).lower()
    return _SPACES_RE.sub(" ", _NON_ALNUM_RE.sub(" ", lowered)).strip()


def significant_words(text: str, min_length: int = 3) -> list[str]:
    """Words of a normalized text that are long enough to be matched."""
    return [word for word in normalize_text(text).split(" ") if len(word) >= min_length]


def contains_word(normalized_text: str, word: str) -> bool:
    """Whole-word test on an already normalized text."""
    return re.search(rf"\b{re.escape(word)}\b", normalized_text) is not None


def contains_phrase(normalized_text: str, phrase: str) -> bool:
    """Whole-word containment of a normalized phrase in a normalized text."""
    if not phrase:
        return False
    return re.search(rf"(?<![a-z0-9]){re.escape(phrase)}(?![a-z0-9])", normalized_text) is not None
