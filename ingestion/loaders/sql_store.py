"""
Document store backed by a relational database (SQLAlchemy async).

Each commit runs in a single transaction, so a batch is applied
all-or-nothing. Works with PostgreSQL (asyncpg) and SQLite (aiosqlite).
"""

from typing import Any, Dict, Optional, Sequence
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from core.database import create_session_maker
from ingestion.loaders.document_store import DocumentStore, apply_operation
from models.document import StoredDocument
from schemas.storage import BatchOperation, parse_address

logger = logging.getLogger(__name__)


class SQLDocumentStore(DocumentStore):
    """
    Store documents as rows of the ``documents`` table.

    Ensures:
    - One transaction per commit (rollback on any failure)
    - Operations applied in enqueue order, including several operations
      on the same address within one batch
    """

    name = "database"

    def __init__(self, session_maker: async_sessionmaker, engine: Optional[AsyncEngine] = None):
        self.session_maker = session_maker
        self.engine = engine

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "SQLDocumentStore":
        return cls(create_session_maker(engine), engine=engine)

    async def _load_row(self, session, collection_path: str, document_id: str) -> Optional[StoredDocument]:
        result = await session.execute(
            select(StoredDocument).where(
                StoredDocument.collection_path == collection_path,
                StoredDocument.document_id == document_id
            )
        )
        return result.scalar_one_or_none()

    async def commit(self, operations: Sequence[BatchOperation]) -> None:
        async with self.session_maker() as session:
            async with session.begin():
                rows: Dict[str, Optional[StoredDocument]] = {}

                for operation in operations:
                    if operation.address not in rows:
                        rows[operation.address] = await self._load_row(
                            session, operation.collection_path, operation.document_id
                        )
                    row = rows[operation.address]

                    body = apply_operation(row.data if row is not None else None, operation)

                    if body is None:
                        if row is not None and row in session.new:
                            # Created earlier in this batch, never written
                            session.expunge(row)
                        elif row is not None:
                            await session.delete(row)
                            # Flush so a later insert on the same address does not collide
                            await session.flush()
                        rows[operation.address] = None
                    elif row is None:
                        row = StoredDocument(
                            collection_path=operation.collection_path,
                            document_id=operation.document_id,
                            data=body
                        )
                        session.add(row)
                        rows[operation.address] = row
                    else:
                        row.data = body

        logger.debug(f"SQL commit applied {len(operations)} operations")

    async def get(self, address: str) -> Optional[Dict[str, Any]]:
        collection_path, document_id = parse_address(address)
        async with self.session_maker() as session:
            row = await self._load_row(session, collection_path, document_id)
            return dict(row.data) if row is not None else None

    async def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(StoredDocument)
                .where(StoredDocument.collection_path == collection_path)
                .order_by(StoredDocument.document_id)
            )
            return {row.document_id: dict(row.data) for row in result.scalars().all()}

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
