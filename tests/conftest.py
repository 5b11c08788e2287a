"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
import httpx
from typing import AsyncGenerator, Callable, Dict, Any, List

from core.clock import VirtualClock
from core.database import create_engine, init_models
from ingestion.context import PipelineContext
from ingestion.extractors.fetcher import RateLimitedFetcher
from ingestion.extractors.senado_client import SenadoAPIClient
from ingestion.loaders.document_store import InMemoryDocumentStore
from ingestion.loaders.sql_store import SQLDocumentStore
from schemas.pipeline import PipelineConfig, PipelineOptions

BASE_URL = "https://senado.test/dadosabertos"


@pytest.fixture
def clock() -> VirtualClock:
    """Virtual clock: sleeps return immediately and are recorded"""
    return VirtualClock()


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """Small, fast tunables"""
    return PipelineConfig(
        max_operations=10,
        pause_between_batches=0.5,
        max_retries=3,
        retry_delay=2.0,
        pause_between_requests=1.0,
        request_timeout=5.0,
    )


@pytest.fixture
def make_context(clock, pipeline_config) -> Callable[..., PipelineContext]:
    """Build a context on the virtual clock; keyword args become options"""
    def _make(**option_values) -> PipelineContext:
        return PipelineContext.create(
            options=PipelineOptions(destination="memory", **option_values),
            config=pipeline_config,
            clock=clock,
        )
    return _make


@pytest_asyncio.fixture(scope="function")
async def sql_store(tmp_path) -> AsyncGenerator[SQLDocumentStore, None]:
    """SQL document store on a throwaway SQLite file"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    await init_models(engine)

    store = SQLDocumentStore.from_engine(engine)
    yield store

    await store.close()


def make_senator(code: int, name: str, party: str = "PT", state: str = "SP", **extra) -> Dict[str, Any]:
    """Raw Parlamentar record as returned by /senador/lista/atual"""
    record = {
        "IdentificacaoParlamentar": {
            "CodigoParlamentar": str(code),
            "CodigoPublicoNaLegAtual": str(800 + code),
            "NomeParlamentar": name,
            "NomeCompletoParlamentar": f"{name} da Silva",
            "SexoParlamentar": "Feminino" if code % 2 else "Masculino",
            "UrlFotoParlamentar": f"http://www.senado.leg.br/senadores/img/fotos-oficiais/senador{code}.jpg",
            "UrlPaginaParlamentar": f"http://www25.senado.leg.br/web/senadores/senador/-/perfil/{code}",
            "EmailParlamentar": f"sen.{name.lower()}@senado.leg.br",
            "SiglaPartidoParlamentar": party,
            "UfParlamentar": state,
            "Telefones": {
                "Telefone": {
                    "NumeroTelefone": "33036000",
                    "OrdemPublicacao": "1",
                    "IndicadorFax": "Não",
                }
            },
        },
        "Mandato": {
            "CodigoMandato": str(500 + code),
            "UfParlamentar": state,
            "DescricaoParticipacao": "Titular",
            "PrimeiraLegislaturaDoMandato": {
                "NumeroLegislatura": "56",
                "DataInicio": "2019-02-01",
                "DataFim": "2023-01-31",
            },
            "SegundaLegislaturaDoMandato": {
                "NumeroLegislatura": "57",
                "DataInicio": "2023-02-01",
                "DataFim": "2027-01-31",
            },
            "Suplentes": {
                "Suplente": [
                    {"DescricaoParticipacao": "1º Suplente", "CodigoParlamentar": "9001", "NomeParlamentar": "Suplente Um"},
                    {"DescricaoParticipacao": "2º Suplente", "CodigoParlamentar": "9002", "NomeParlamentar": "Suplente Dois"},
                ]
            },
            "Exercicios": {
                "Exercicio": [
                    {"CodigoExercicio": "1", "DataInicio": "2019-02-01", "DataFim": "2020-05-01"},
                    {"CodigoExercicio": "2", "DataInicio": "2021-03-01"},
                ]
            },
        },
    }
    record["IdentificacaoParlamentar"].update(extra)
    return record


def senators_payload(senators: Any) -> Dict[str, Any]:
    """Wrap records the way /senador/lista/atual does"""
    return {
        "ListaParlamentarEmExercicio": {
            "Metadados": {"Versao": "2024-01-01"},
            "Parlamentares": {"Parlamentar": senators},
        }
    }


@pytest.fixture
def mock_senators() -> List[Dict[str, Any]]:
    """Three sitting senators from two parties and two states"""
    return [
        make_senator(101, "Ana", party="PT", state="SP"),
        make_senator(102, "Bruno", party="PSDB", state="MG"),
        make_senator(103, "Carla", party="PT", state="MG"),
    ]


@pytest.fixture
def make_client(clock, pipeline_config) -> Callable[..., SenadoAPIClient]:
    """
    Build a SenadoAPIClient whose HTTP calls go to ``handler``.

    ``handler`` receives the httpx.Request and returns an httpx.Response.
    """
    def _make(handler) -> SenadoAPIClient:
        fetcher = RateLimitedFetcher.from_config(pipeline_config, clock=clock)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
        return SenadoAPIClient(fetcher, base_url=BASE_URL, timeout=5.0, http_client=http_client)
    return _make


@pytest.fixture
def senator_factory() -> Callable[..., Dict[str, Any]]:
    return make_senator


@pytest.fixture
def payload_factory() -> Callable[[Any], Dict[str, Any]]:
    return senators_payload
