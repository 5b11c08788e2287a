import logging
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.clock import Clock
from core.config import settings
from core.exceptions import ETLException
from ingestion.context import PipelineContext
from ingestion.extractors.fetcher import RateLimitedFetcher
from ingestion.extractors.senado_client import SenadoAPIClient
from ingestion.loaders.destinations import create_document_store
from ingestion.loaders.document_store import DocumentStore
from ingestion.processors.senators import SenatorsProcessor
from schemas.pipeline import PipelineConfig, PipelineOptions

logger = logging.getLogger(__name__)


class ETLScheduler:
    """
    Run the senators pipeline on a fixed interval.

    Only one run of the job is allowed at a time (max_instances=1); a tick
    that fires while a run is still going is skipped by APScheduler.
    """

    def __init__(
        self,
        options: Optional[PipelineOptions] = None,
        store_factory: Optional[Callable[[], DocumentStore]] = None,
        client_factory: Optional[Callable[[RateLimitedFetcher], SenadoAPIClient]] = None,
        clock: Optional[Clock] = None,
        interval_minutes: Optional[int] = None
    ):
        self.scheduler = AsyncIOScheduler()
        self.options = options or PipelineOptions(destination=settings.ETL_DESTINATION)
        self.store_factory = store_factory or (lambda: create_document_store(self.options.destination, settings))
        self.client_factory = client_factory or (lambda fetcher: SenadoAPIClient(fetcher))
        self.clock = clock or Clock()
        self.interval_minutes = interval_minutes or settings.ETL_SCHEDULE_MINUTES
        self.last_result = None

    async def run_etl_job(self):
        """Job to run ETL pipeline"""
        logger.info("Scheduler: Starting ETL job")
        context = PipelineContext.create(
            options=self.options,
            config=PipelineConfig.from_settings(settings),
            clock=self.clock,
            logger_name="ingestion.processors.senators",
        )
        fetcher = RateLimitedFetcher.from_config(context.config, clock=self.clock)
        store = self.store_factory()
        try:
            async with self.client_factory(fetcher) as client:
                processor = SenatorsProcessor(context, client, store)
                self.last_result = await processor.run()
                logger.info(f"Scheduler: ETL job finished with status {self.last_result.status}")
        except ETLException as e:
            logger.error(
                f"Scheduler: ETL job failed - {e.message}",
                extra={"error_context": e.to_dict()}
            )
        except Exception as e:
            logger.exception(f"Scheduler: ETL job failed - {e}")
        finally:
            await store.close()

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_etl_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="etl_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"ETL Scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("ETL Scheduler stopped")
