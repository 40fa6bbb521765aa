from wasteflow.columns.resolver import is_usable, normalize_key, positional_key, resolve


class TestNormalizeKey:
    def test_accents_spaces_and_case(self) -> None:
        assert normalize_key("Libellé  Entité") == "libelle_entite"

    def test_punctuation(self) -> None:
        assert normalize_key(" Sous-chapitre (comptable) ") == "sous_chapitre_comptable"

    def test_ligature(self) -> None:
        assert normalize_key("Main d'Œuvre") == "main_d_oeuvre"


class TestIsUsable:
    def test_values(self) -> None:
        assert is_usable("x") is True
        assert is_usable(0) is True

    def test_unusable(self) -> None:
        assert is_usable(None) is False
        assert is_usable("  ") is False
        assert is_usable(float("nan")) is False


class TestResolve:
    def test_exact_candidate(self) -> None:
        row = {"Libellé Entité": "Agence Nord"}
        assert resolve(row, ["Libellé Entité"]) == "Agence Nord"

    def test_candidates_in_order(self) -> None:
        row = {"Libelle Entite": "second", "Libellé Entité": "first"}
        assert resolve(row, ["Libellé Entité", "Libelle Entite"]) == "first"

    def test_skips_blank_candidates(self) -> None:
        row = {"Libellé Entité": " ", "Libelle Entite": "Agence Nord"}
        assert resolve(row, ["Libellé Entité", "Libelle Entite"]) == "Agence Nord"

    def test_normalized_candidate(self) -> None:
        row = {"LIBELLE_ENTITE": "Agence Nord"}
        assert resolve(row, ["Libellé Entité"]) == "Agence Nord"

    def test_positional_fallback(self) -> None:
        row = {positional_key(0): "", positional_key(3): "C100"}
        assert resolve(row, ["Code Chantier"], positions=(0, 3)) == "C100"

    def test_indicative_scan(self) -> None:
        row = {positional_key(9): "Réception"}
        assert resolve(row, ["Origine"], indicative_values=("Réception",)) == "Réception"

    def test_nothing_usable(self) -> None:
        assert resolve({"Autre": "x"}, ["Origine"], positions=(6,)) is None
