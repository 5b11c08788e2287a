"""
Build the document store for a destination name
"""

from typing import Optional, Union
import logging

from core.config import Settings, settings as default_settings
from core.database import create_engine
from ingestion.loaders.document_store import DocumentStore, InMemoryDocumentStore
from ingestion.loaders.file_store import JSONFileStore
from ingestion.loaders.sql_store import SQLDocumentStore
from models.base import DestinationType

logger = logging.getLogger(__name__)


def create_document_store(
    destination: Union[DestinationType, str],
    settings: Optional[Settings] = None
) -> DocumentStore:
    """
    Create the store for ``destination``.

    - database: SQLDocumentStore on settings.DATABASE_URL
    - local: JSONFileStore under settings.EXPORT_BASE_DIR
    - memory: InMemoryDocumentStore

    Raises:
        ValueError: For an unknown destination
    """
    settings = settings or default_settings
    destination = DestinationType(destination)

    if destination == DestinationType.DATABASE:
        logger.info("Using SQL document store")
        return SQLDocumentStore.from_engine(create_engine(settings.DATABASE_URL))

    if destination == DestinationType.LOCAL:
        logger.info(f"Using local JSON export under {settings.EXPORT_BASE_DIR}")
        return JSONFileStore(settings.EXPORT_BASE_DIR)

    logger.info("Using in-memory document store")
    return InMemoryDocumentStore()
