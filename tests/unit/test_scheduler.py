import httpx
import pytest
from unittest.mock import AsyncMock, patch
from ingestion.extractors.senado_client import SenadoAPIClient
from ingestion.loaders.document_store import InMemoryDocumentStore
from ingestion.scheduler import ETLScheduler
from schemas.pipeline import PipelineOptions


@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = ETLScheduler(interval_minutes=15)
    assert scheduler.scheduler is not None
    assert scheduler.interval_minutes == 15


@pytest.mark.asyncio
async def test_scheduler_registers_single_instance_job():
    scheduler = ETLScheduler(interval_minutes=30)
    scheduler.start()
    try:
        job = scheduler.scheduler.get_job("etl_job")
        assert job is not None
        assert job.max_instances == 1
    finally:
        scheduler.stop()


@pytest.mark.asyncio
async def test_scheduler_job_execution(clock, mock_senators, payload_factory):
    store = InMemoryDocumentStore()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload_factory(mock_senators))

    def client_factory(fetcher):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SenadoAPIClient(fetcher, base_url="https://senado.test", http_client=http_client)

    scheduler = ETLScheduler(
        options=PipelineOptions(destination="memory"),
        store_factory=lambda: store,
        client_factory=client_factory,
        clock=clock,
    )

    await scheduler.run_etl_job()

    assert scheduler.last_result.status == "success"
    assert scheduler.last_result.successes == 3
    assert len(await store.list_collection("congressoNacional/senadoFederal/atual/senadores/itens")) == 3


@pytest.mark.asyncio
async def test_scheduler_job_failure_is_logged_not_raised(clock):
    store = AsyncMock()

    with patch("ingestion.scheduler.SenatorsProcessor") as mock_processor_cls:
        mock_processor_cls.return_value.run = AsyncMock(side_effect=RuntimeError("boom"))

        scheduler = ETLScheduler(
            options=PipelineOptions(destination="memory"),
            store_factory=lambda: store,
            clock=clock,
        )
        await scheduler.run_etl_job()

    assert mock_processor_cls.return_value.run.called
    assert scheduler.last_result is None
    store.close.assert_awaited_once()
