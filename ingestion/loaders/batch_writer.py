"""
Batched, paced writes into a document store.

Operations are queued in memory and committed in batches of at most
``max_operations``. After every commit attempt the writer pauses for
``pause_between_batches`` seconds so the store is not overloaded.
"""

from typing import Any, Dict, List, Optional
import logging

from pydantic_core import to_jsonable_python

from core.clock import Clock
from core.exceptions import BatchCommitError
from ingestion.loaders.document_store import DocumentStore
from models.base import OperationKind
from schemas.storage import BatchOperation, BatchResult, LoadResult, parse_address

logger = logging.getLogger(__name__)


class BatchWriter:
    """
    Queue write operations and flush them as atomic batches.

    Responsibilities:
    - Validate addresses before anything is queued
    - Stamp created_at/updated_at from the injected clock
    - Flush automatically when the batch is full (the caller waits)
    - Always clear the batch after a commit attempt, successful or not

    Usage:
        async with BatchWriter(store, max_operations=250) as writer:
            await writer.set("colecao/doc", {"campo": 1})
        # remaining operations are committed on clean exit
    """

    def __init__(
        self,
        store: DocumentStore,
        max_operations: int = 250,
        pause_between_batches: float = 0.5,
        clock: Optional[Clock] = None,
        label: Optional[str] = None
    ):
        if max_operations < 1:
            raise ValueError("max_operations must be at least 1")

        self.store = store
        self.max_operations = max_operations
        self.pause_between_batches = pause_between_batches
        self.clock = clock or Clock()
        self.label = label or "unknown path"

        self._operations: List[BatchOperation] = []
        self.operations_committed = 0
        self.batches_committed = 0

    @classmethod
    def from_config(cls, store: DocumentStore, config, clock: Optional[Clock] = None, label: Optional[str] = None) -> "BatchWriter":
        return cls(
            store,
            max_operations=config.max_operations,
            pause_between_batches=config.pause_between_batches,
            clock=clock,
            label=label,
        )

    @property
    def pending_operations(self) -> int:
        return len(self._operations)

    async def __aenter__(self) -> "BatchWriter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.commit_and_reset()
        elif self._operations:
            logger.warning(
                f"Discarding {len(self._operations)} pending operations for "
                f"{self.label} after error: {exc}"
            )
            self._operations = []

    # ------------------------------------------------------------------
    # Queueing
    # ------------------------------------------------------------------

    def _stamp(self, data: Dict[str, Any], created: bool) -> Dict[str, Any]:
        now = self.clock.now()
        stamped = {**data, "updated_at": now}
        if created:
            stamped["created_at"] = now
        return to_jsonable_python(stamped)

    async def _enqueue(self, operation: BatchOperation) -> None:
        self._operations.append(operation)
        if len(self._operations) >= self.max_operations:
            await self.commit_and_reset()

    async def set(self, address: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Create or replace the document (shallow merge when ``merge``)"""
        collection_path, document_id = parse_address(address)
        await self._enqueue(BatchOperation(
            kind=OperationKind.SET,
            address=address,
            collection_path=collection_path,
            document_id=document_id,
            payload=self._stamp(data, created=not merge),
            merge=merge,
        ))

    async def update(self, address: str, data: Dict[str, Any]) -> None:
        """Update fields of an existing document"""
        collection_path, document_id = parse_address(address)
        await self._enqueue(BatchOperation(
            kind=OperationKind.UPDATE,
            address=address,
            collection_path=collection_path,
            document_id=document_id,
            payload=self._stamp(data, created=False),
        ))

    async def delete(self, address: str) -> None:
        collection_path, document_id = parse_address(address)
        await self._enqueue(BatchOperation(
            kind=OperationKind.DELETE,
            address=address,
            collection_path=collection_path,
            document_id=document_id,
        ))

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    async def commit_and_reset(self) -> Optional[BatchResult]:
        """
        Commit the queued operations as one batch.

        Returns:
            BatchResult, or None when nothing was queued

        Raises:
            BatchCommitError: If the store rejected the batch. The batch is
                discarded; its addresses are in ``context["addresses"]``.
        """
        if not self._operations:
            logger.debug(f"No operations to commit for {self.label}")
            return None

        operations = self._operations
        count = len(operations)
        addresses = [op.address for op in operations]
        started = self.clock.monotonic()

        logger.info(f"Committing batch of {count} operations for {self.label}...")

        try:
            await self.store.commit(operations)
        except Exception as e:
            logger.error(f"Batch commit failed for {self.label}: {e}")
            raise BatchCommitError(
                f"Failed to commit batch of {count} operations",
                context={
                    "operation_count": count,
                    "addresses": addresses,
                    "store": self.store.name,
                },
                original_exception=e
            )
        finally:
            self._operations = []
            await self.clock.sleep(self.pause_between_batches)

        self.operations_committed += count
        self.batches_committed += 1
        logger.info(f"Batch of {count} operations committed for {self.label}")

        return BatchResult(
            total=count,
            successes=count,
            failures=0,
            duration_seconds=self.clock.monotonic() - started,
            addresses=addresses,
        )

    def summary(self, items_loaded: int = 0, **details) -> LoadResult:
        return LoadResult(
            destination=self.store.name,
            operations_committed=self.operations_committed,
            batches_committed=self.batches_committed,
            items_loaded=items_loaded,
            details=details,
        )
