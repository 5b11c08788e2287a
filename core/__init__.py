"""
Core utilities and configuration for the Senado ETL system.

Modules:
    config: Application configuration and environment variable management
    database: Async engine/session factories and table creation
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration
    clock: Real and virtual clocks for sleeps and timestamps

Usage:
    from core.config import settings
    from core.database import create_engine, init_models
    from core.exceptions import FatalPipelineError, BatchCommitError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "create_engine",
    "create_session_maker",
    "init_models",
    "setup_logging",
    "Clock",
    "VirtualClock",
    # Exceptions
    "ETLException",
    "RetryableError",
    "NonRetryableError",
    "ValidationError",
    "AddressError",
    "ExtractionError",
    "ApiError",
    "TransientRemoteError",
    "RateLimitError",
    "NotFoundError",
    "BadRequestError",
    "DataFormatError",
    "UnrecognizedShapeError",
    "TransformationError",
    "PartialItemError",
    "LoadError",
    "BatchCommitError",
    "DocumentNotFoundError",
    "FatalPipelineError",
    "ProgressStateError",
]
