"""
Transform Senate API senator records into the Senator schema
"""

from typing import Any, Dict, List, Optional
import logging

from ingestion.extractors.shapes import as_list
from schemas.senado import (
    Bloc,
    Exercise,
    LegislatureTerm,
    Mandate,
    MandateMember,
    Party,
    Phone,
    Senator,
    SenatorSituation,
    SenatorStatistics,
)

logger = logging.getLogger(__name__)


def senator_code(raw: Dict[str, Any]) -> Optional[str]:
    """CodigoParlamentar of a raw record, as a string"""
    code = (raw.get("IdentificacaoParlamentar") or {}).get("CodigoParlamentar")
    return str(code) if code not in (None, "") else None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _phones(raw_phones: Any) -> List[Phone]:
    if not isinstance(raw_phones, dict):
        return []
    phones = []
    for phone in as_list(raw_phones.get("Telefone")):
        try:
            order = int(phone.get("OrdemPublicacao") or 0)
        except (TypeError, ValueError):
            order = 0
        phones.append(Phone(
            number=_text(phone.get("NumeroTelefone")),
            kind="fax" if phone.get("IndicadorFax") == "Sim" else "phone",
            order=order,
        ))
    return phones


def _exercises(raw_exercises: Any) -> List[Exercise]:
    if not isinstance(raw_exercises, dict):
        return []
    exercises = [
        Exercise(
            code=_text(exercise.get("CodigoExercicio")),
            start_date=exercise.get("DataInicio") or None,
            end_date=exercise.get("DataFim") or None,
            leave_reason=exercise.get("SiglaCausaAfastamento") or None,
            leave_description=exercise.get("DescricaoCausaAfastamento") or None,
        )
        for exercise in as_list(raw_exercises.get("Exercicio"))
    ]
    # Most recent first (ISO dates sort lexically); undated ones go last
    dated = sorted((e for e in exercises if e.start_date), key=lambda e: e.start_date, reverse=True)
    undated = [e for e in exercises if not e.start_date]
    return dated + undated


def _legislature(raw: Any) -> Optional[LegislatureTerm]:
    if not isinstance(raw, dict):
        return None
    return LegislatureTerm(
        number=_text(raw.get("NumeroLegislatura")),
        start_date=raw.get("DataInicio") or None,
        end_date=raw.get("DataFim") or None,
    )


def _member(raw: Dict[str, Any]) -> MandateMember:
    return MandateMember(
        participation=_text(raw.get("DescricaoParticipacao")),
        code=_text(raw.get("CodigoParlamentar")),
        name=_text(raw.get("NomeParlamentar")),
    )


def _mandate(raw: Dict[str, Any]) -> Optional[Mandate]:
    if not raw or not raw.get("CodigoMandato"):
        return None
    substitutes = raw.get("Suplentes") or {}
    return Mandate(
        code=_text(raw.get("CodigoMandato")),
        state=_text(raw.get("UfParlamentar")),
        participation=_text(raw.get("DescricaoParticipacao")),
        first_legislature=_legislature(raw.get("PrimeiraLegislaturaDoMandato")),
        second_legislature=_legislature(raw.get("SegundaLegislaturaDoMandato")),
        substitutes=[_member(s) for s in as_list(substitutes.get("Suplente"))],
        incumbent=_member(raw["Titular"]) if isinstance(raw.get("Titular"), dict) else None,
    )


def transform_senator(raw: Dict[str, Any], detail: Optional[Dict[str, Any]] = None) -> Senator:
    """
    Reshape one ``Parlamentar`` record.

    Args:
        raw: Record from /senador/lista/atual
        detail: Optional record from /senador/{code}, kept under ``details``

    Raises:
        ValueError: If the record has no IdentificacaoParlamentar block
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("IdentificacaoParlamentar"), dict):
        raise ValueError("Senator record without IdentificacaoParlamentar")

    identification = raw["IdentificacaoParlamentar"]
    mandate = raw.get("Mandato") or {}
    participation = _text(mandate.get("DescricaoParticipacao"))
    bloc = identification.get("Bloco")

    exercises = _exercises(mandate.get("Exercicios"))

    senator = Senator(
        code=identification.get("CodigoParlamentar"),
        public_code=_text(identification.get("CodigoPublicoNaLegAtual")),
        name=identification.get("NomeParlamentar"),
        full_name=_text(
            identification.get("NomeCompletoParlamentar") or identification.get("NomeParlamentar")
        ),
        gender=_text(identification.get("SexoParlamentar")),
        photo_url=_text(identification.get("UrlFotoParlamentar")),
        page_url=_text(identification.get("UrlPaginaParlamentar")),
        personal_page_url=identification.get("UrlPaginaParticular") or None,
        email=_text(identification.get("EmailParlamentar")),
        party=Party(acronym=_text(identification.get("SiglaPartidoParlamentar"))),
        state=_text(identification.get("UfParlamentar")),
        bloc=Bloc(
            code=_text(bloc.get("CodigoBloco")),
            name=_text(bloc.get("NomeBloco")),
            nickname=_text(bloc.get("NomeApelido")),
            created_on=bloc.get("DataCriacao") or None,
        ) if isinstance(bloc, dict) else None,
        phones=_phones(identification.get("Telefones")),
        situation=SenatorSituation(
            exercises=exercises,
            # The latest exercise having an end date means the senator is on leave
            on_leave=bool(exercises) and exercises[0].end_date is not None,
            incumbent=not participation or participation == "Titular",
            substitute="Suplente" in participation,
            board_member=identification.get("MembroMesa") == "Sim",
            leadership_member=identification.get("MembroLideranca") == "Sim",
        ),
        mandate=_mandate(mandate),
        details=detail,
    )
    return senator


def compute_statistics(senators: List[Senator]) -> SenatorStatistics:
    """Counts by party, state and gender"""
    stats = SenatorStatistics(total=len(senators))
    for senator in senators:
        party = senator.party.acronym or "No party"
        state = senator.state or "No state"
        gender = senator.gender or "Not informed"
        stats.by_party[party] = stats.by_party.get(party, 0) + 1
        stats.by_state[state] = stats.by_state.get(state, 0) + 1
        stats.by_gender[gender] = stats.by_gender.get(gender, 0) + 1
    return stats
