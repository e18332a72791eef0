"""
Tests for text and domain normalization helpers.
"""

from datetime import datetime

import pytest

from plenario.services import normalization


class TestGenderedRole:
    """Role titles follow the holder's sex."""

    @pytest.mark.parametrize("role, sex, expected", [
        ("Deputado Federal", "F", "Deputada Federal"),
        ("Deputada Federal", "M", "Deputado Federal"),
        ("Senador", "F", "Senadora"),
        ("Governador", "F", "Governadora"),
        ("Presidente", "F", "Presidenta"),
        ("Deputado Federal", None, "Deputado Federal"),
        ("Vereador", "F", "Vereador"),
    ])
    def test_gendered_role(self, role, sex, expected):
        assert normalization.gendered_role(role, sex) == expected


class TestText:
    """Free-text cleanup."""

    def test_format_text_expands_abbreviations(self):
        assert normalization.format_text("APROVADA A PEC 45") == "Aprovada a Proposta de Emenda à Constituição (PEC) 45"

    def test_format_text_empty(self):
        assert normalization.format_text(None) == ""

    def test_format_name(self):
        assert normalization.format_name("JOSÉ DA SILVA") == "José Da Silva"

    @pytest.mark.parametrize("text, expected", [
        ("Altera regras do FUNDEB", "education"),
        ("Amplia atendimento do SUS", "health"),
        ("Reforma tributária", "economy"),
        ("Denominação de viaduto", "activity"),
    ])
    def test_detect_category(self, text, expected):
        assert normalization.detect_category(text) == expected


class TestDates:
    """Date formatting used by feeds and profiles."""

    def test_format_date_from_datetime(self):
        assert normalization.format_date("2024-10-12T14:30:00") == "12/10/2024"

    def test_format_date_passthrough(self):
        assert normalization.format_date("ontem") == "ontem"

    def test_format_time(self):
        assert normalization.format_time("2024-10-12T14:30") == "14:30"

    def test_parse_feed_date_invalid(self):
        assert normalization.parse_feed_date("99/99/2024") == datetime.min


class TestParties:
    """Ideology metadata and the static fallback."""

    def test_known_party(self):
        assert normalization.get_ideology("psol") == "Esquerda"

    def test_unknown_party_is_centro(self):
        assert normalization.get_ideology("XYZ") == "Centro"

    def test_static_parties_have_unique_ids(self):
        parties = normalization.static_parties()

        assert len({p.id for p in parties}) == len(parties)
        assert any(p.sigla == "PT" for p in parties)

    def test_force_list(self):
        assert normalization.force_list(None) == []
        assert normalization.force_list({"a": 1}) == [{"a": 1}]
        assert normalization.force_list([1, 2]) == [1, 2]
