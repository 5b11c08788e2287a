"""
ETL pipeline components for data ingestion and processing.

Modules:
    base: ETLProcessor, the validate/extract/transform/load template
    context: Run context (options, config, logger, stats, clock)
    progress: Progress event channel
    scheduler: APScheduler integration for recurring runs

Subpackages:
    extractors: Senate API client, retry/pacing and response decoding
    transformers: Reshaping of raw API records
    loaders: Batched writes and the document stores
    processors: Concrete entity pipelines

Architecture:
    1. Validate - Check run options before any remote call
    2. Extract - Fetch data with fixed-delay retry and request pacing
    3. Transform - Reshape records; a bad record is skipped, not fatal
    4. Load - Queue writes into size-bounded, paced batches

Usage:
    from ingestion.context import PipelineContext
    from ingestion.processors.senators import SenatorsProcessor

Example:
    context = PipelineContext.create(options=PipelineOptions(limit=5))
    fetcher = RateLimitedFetcher.from_config(context.config)
    async with SenadoAPIClient(fetcher) as client:
        processor = SenatorsProcessor(context, client, InMemoryDocumentStore())
        processor.on_progress(print)
        result = await processor.run()

Error Handling:
    Phase failures surface as FatalPipelineError (validation failures as
    ValidationError); see core.exceptions.
"""

__all__ = [
    "ETLProcessor",
    "PipelineContext",
    "ProcessingStats",
    "ProgressChannel",
    "ETLScheduler",
]
