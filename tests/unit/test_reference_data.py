from pathlib import Path

import pytest

from wasteflow.classification.exceptions import ReferenceDataError
from wasteflow.classification.models import Source
from wasteflow.classification.reference_data import (
    get_reference_tables,
    load_correspondence_table,
    parse_correspondence_csv,
    parse_source,
    reload_reference_tables,
)

_HEADER = "source,term,formulation,code,danger\n"


class TestParseSource:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("ATELIER", Source.WORKSHOP),
            ("labo", Source.LAB),
            (" Dépôt ", Source.DEPOT),
            ("workshop", Source.WORKSHOP),
        ],
    )
    def test_known_tokens(self, token: str, expected: Source) -> None:
        assert parse_source(token) == expected

    def test_unknown_token(self) -> None:
        with pytest.raises(ValueError):
            parse_source("garage")


class TestParseCorrespondenceCsv:
    def test_parses_rows_in_order(self) -> None:
        text = _HEADER + "ATELIER,huile noire,Huile moteur,13 02 05*,vrai\nLABO,aérosols,Aérosols,16 05 04*,faux\n"
        entries = parse_correspondence_csv(text)
        assert len(entries) == 2
        assert entries[0].source == Source.WORKSHOP
        assert entries[0].code.code == "130205"
        assert entries[0].code.hazardous_marker is True
        assert entries[0].hazardous is True
        assert entries[1].hazardous is False

    @pytest.mark.parametrize("flag", ["vrai", "TRUE", "1", "oui"])
    def test_truthy_flags(self, flag: str) -> None:
        entries = parse_correspondence_csv(_HEADER + f"DEPOT,piles,Piles,20 01 33*,{flag}\n")
        assert entries[0].hazardous is True

    def test_skips_rows_without_term(self) -> None:
        entries = parse_correspondence_csv(_HEADER + "DEPOT,,Piles,20 01 33*,vrai\n")
        assert entries == ()

    def test_missing_column(self) -> None:
        with pytest.raises(ReferenceDataError, match="danger"):
            parse_correspondence_csv("source,term,formulation,code\n")

    def test_invalid_code(self) -> None:
        with pytest.raises(ReferenceDataError, match="line 2"):
            parse_correspondence_csv(_HEADER + "DEPOT,piles,Piles,20 01,vrai\n")

    def test_unknown_source(self) -> None:
        with pytest.raises(ReferenceDataError):
            parse_correspondence_csv(_HEADER + "GARAGE,piles,Piles,20 01 33*,vrai\n")


class TestLoadCorrespondenceTable:
    def test_bundled_table(self) -> None:
        entries = load_correspondence_table()
        assert len(entries) > 0
        assert entries[0].source == Source.WORKSHOP
        assert {entry.source for entry in entries} == {Source.WORKSHOP, Source.LAB, Source.DEPOT}

    def test_custom_path(self, tmp_path: Path) -> None:
        path = tmp_path / "table.csv"
        path.write_text(_HEADER + "DEPOT,piles,Piles,20 01 33*,vrai\n", encoding="utf-8")
        entries = load_correspondence_table(path)
        assert [entry.matched_term for entry in entries] == ["piles"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ReferenceDataError, match="Failed to load"):
            load_correspondence_table(tmp_path / "missing.csv")


class TestReloadReferenceTables:
    def test_swaps_snapshot(self, tmp_path: Path) -> None:
        path = tmp_path / "table.csv"
        path.write_text(_HEADER + "DEPOT,piles,Piles,20 01 33*,vrai\n", encoding="utf-8")
        before = get_reference_tables()
        try:
            fresh = reload_reference_tables(path)
            assert get_reference_tables() is fresh
            assert len(fresh.correspondence) == 1
            assert len(before.correspondence) > 1
        finally:
            reload_reference_tables()

    def test_memoized(self) -> None:
        assert get_reference_tables() is get_reference_tables()
