"""
Script to run the senators ETL pipeline once

Usage:
    python scripts/run_etl.py --destination local --limit 5
    python scripts/run_etl.py --state SP --details --dry-run
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.exceptions import ETLException
from core.logging import setup_logging
from core.database import init_models
from ingestion.context import PipelineContext
from ingestion.extractors.fetcher import RateLimitedFetcher
from ingestion.extractors.senado_client import SenadoAPIClient
from ingestion.loaders.destinations import create_document_store
from ingestion.loaders.sql_store import SQLDocumentStore
from ingestion.processors.senators import SenatorsProcessor
from models.base import DestinationType
from schemas.pipeline import PipelineConfig, PipelineOptions, ProgressEvent

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract sitting senators from the Senate open data API")
    parser.add_argument(
        "--destination",
        choices=[d.value for d in DestinationType],
        default=settings.ETL_DESTINATION,
        help="Where to save the documents"
    )
    parser.add_argument("--limit", type=int, help="Process at most N senators")
    parser.add_argument("--legislature", type=int, help="Legislature number (default: current)")
    parser.add_argument("--senator", help="Only this senator code")
    parser.add_argument("--party", help="Only senators of this party (e.g. PT)")
    parser.add_argument("--state", help="Only senators of this state (e.g. SP)")
    parser.add_argument("--details", action="store_true", help="Also fetch per-senator details")
    parser.add_argument("--dry-run", action="store_true", help="Skip the load phase")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace) -> PipelineOptions:
    return PipelineOptions(
        destination=args.destination,
        limit=args.limit,
        legislature=args.legislature,
        senator=args.senator,
        party=args.party,
        state=args.state,
        details=args.details,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )


def log_progress(event: ProgressEvent) -> None:
    logger.info(f"[{event.percent:3d}%] {event.status.value}: {event.message}")


async def run_etl(options: PipelineOptions) -> int:
    """Run the pipeline; returns the process exit code"""
    context = PipelineContext.create(
        options=options,
        config=PipelineConfig.from_settings(settings),
        logger_name="ingestion.processors.senators",
    )
    fetcher = RateLimitedFetcher.from_config(context.config, clock=context.clock)
    store = None if options.dry_run else create_document_store(options.destination, settings)

    try:
        if isinstance(store, SQLDocumentStore):
            await init_models(store.engine)

        async with SenadoAPIClient(fetcher, timeout=context.config.request_timeout) as client:
            processor = SenatorsProcessor(context, client, store)
            processor.on_progress(log_progress)
            result = await processor.run()

        logger.info(
            f"ETL completed: {result.status} - "
            f"Processed={result.total_processed}, Successes={result.successes}, "
            f"Failures={result.failures}, Destination={result.destination}"
        )
        return 0

    except ETLException as e:
        logger.error(f"ETL pipeline error: {e.message}", extra={"error_context": e.to_dict()})
        return 1
    finally:
        if store is not None:
            await store.close()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)
    return asyncio.run(run_etl(options_from_args(args)))


if __name__ == "__main__":
    sys.exit(main())
