"""
Unit tests for senator transformation
"""

import pytest
from pydantic import ValidationError as SchemaValidationError

from ingestion.transformers.senators import compute_statistics, senator_code, transform_senator


class TestTransformSenator:
    """Test reshaping of Parlamentar records"""

    def test_basic_fields(self, senator_factory):
        senator = transform_senator(senator_factory(101, "Ana", party="PT", state="sp"))

        assert senator.code == "101"
        assert senator.name == "Ana"
        assert senator.full_name == "Ana da Silva"
        assert senator.party.acronym == "PT"
        assert senator.state == "SP"
        assert senator.email == "sen.ana@senado.leg.br"

    def test_single_phone_object(self, senator_factory):
        senator = transform_senator(senator_factory(101, "Ana"))

        assert len(senator.phones) == 1
        assert senator.phones[0].number == "33036000"
        assert senator.phones[0].kind == "phone"
        assert senator.phones[0].order == 1

    def test_mandate_and_substitutes(self, senator_factory):
        senator = transform_senator(senator_factory(101, "Ana"))

        assert senator.mandate.code == "601"
        assert senator.mandate.first_legislature.number == "56"
        assert senator.mandate.second_legislature.number == "57"
        assert [s.code for s in senator.mandate.substitutes] == ["9001", "9002"]
        assert senator.mandate.incumbent is None

    def test_exercises_most_recent_first(self, senator_factory):
        senator = transform_senator(senator_factory(101, "Ana"))

        exercises = senator.situation.exercises
        assert [e.code for e in exercises] == ["2", "1"]
        # Latest exercise has no end date: in office
        assert senator.situation.on_leave is False
        assert senator.situation.incumbent is True
        assert senator.situation.substitute is False

    def test_on_leave_when_latest_exercise_ended(self, senator_factory):
        raw = senator_factory(101, "Ana")
        raw["Mandato"]["Exercicios"]["Exercicio"][1]["DataFim"] = "2022-01-01"

        assert transform_senator(raw).situation.on_leave is True

    def test_substitute_senator(self, senator_factory):
        raw = senator_factory(101, "Ana")
        raw["Mandato"]["DescricaoParticipacao"] = "1º Suplente"
        raw["Mandato"]["Titular"] = {
            "DescricaoParticipacao": "Titular",
            "CodigoParlamentar": "77",
            "NomeParlamentar": "Titular Original",
        }

        senator = transform_senator(raw)

        assert senator.situation.substitute is True
        assert senator.situation.incumbent is False
        assert senator.mandate.incumbent.code == "77"

    def test_missing_mandate(self, senator_factory):
        raw = senator_factory(101, "Ana")
        del raw["Mandato"]

        senator = transform_senator(raw)

        assert senator.mandate is None
        assert senator.situation.exercises == []

    def test_detail_is_kept(self, senator_factory):
        detail = {"DadosBasicosParlamentar": {"DataNascimento": "1960-01-01"}}
        senator = transform_senator(senator_factory(101, "Ana"), detail)

        assert senator.details == detail

    def test_missing_identification_raises(self):
        with pytest.raises(ValueError):
            transform_senator({"Mandato": {}})

    def test_missing_code_raises(self, senator_factory):
        raw = senator_factory(101, "Ana")
        del raw["IdentificacaoParlamentar"]["CodigoParlamentar"]

        with pytest.raises(SchemaValidationError):
            transform_senator(raw)

    def test_code_with_slash_raises(self, senator_factory):
        raw = senator_factory(101, "Ana")
        raw["IdentificacaoParlamentar"]["CodigoParlamentar"] = "10/1"

        with pytest.raises(SchemaValidationError):
            transform_senator(raw)

    def test_senator_code(self, senator_factory):
        assert senator_code(senator_factory(5, "Eva")) == "5"
        assert senator_code({}) is None


class TestStatistics:
    """Test aggregate counts"""

    def test_counts(self, mock_senators):
        senators = [transform_senator(raw) for raw in mock_senators]

        stats = compute_statistics(senators)

        assert stats.total == 3
        assert stats.by_party == {"PT": 2, "PSDB": 1}
        assert stats.by_state == {"SP": 1, "MG": 2}
        assert sum(stats.by_gender.values()) == 3

    def test_missing_party(self, senator_factory):
        senator = transform_senator(senator_factory(1, "Sem", party=""))

        assert compute_statistics([senator]).by_party == {"No party": 1}
