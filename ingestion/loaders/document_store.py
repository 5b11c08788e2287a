"""
Document store interface and the in-memory implementation.

A store receives whole batches and applies them all-or-nothing: either
every operation of a commit is visible afterwards or none is.
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence
import logging

from core.exceptions import DocumentNotFoundError
from models.base import OperationKind
from schemas.storage import BatchOperation, parse_address

logger = logging.getLogger(__name__)


def apply_operation(current: Optional[Dict[str, Any]], operation: BatchOperation) -> Optional[Dict[str, Any]]:
    """
    Compute the state of a document after ``operation``.

    Returns the new body, or None when the document ends up deleted.

    Raises:
        DocumentNotFoundError: If an update targets a missing document
    """
    if operation.kind == OperationKind.DELETE:
        return None

    payload = operation.payload or {}

    if operation.kind == OperationKind.UPDATE:
        if current is None:
            raise DocumentNotFoundError(
                f"Cannot update missing document {operation.address}",
                context={"address": operation.address}
            )
        return {**current, **payload}

    # SET: shallow merge keeps the original creation stamp and other fields
    if operation.merge and current is not None:
        return {**current, **payload}
    return dict(payload)


class DocumentStore(ABC):
    """
    Hierarchical document store client.

    Implementations:
    - InMemoryDocumentStore: process memory, for development and tests
    - SQLDocumentStore: one row per document in a relational database
    - JSONFileStore: one JSON file per document on the local disk
    """

    name: str = "store"

    @abstractmethod
    async def commit(self, operations: Sequence[BatchOperation]) -> None:
        """Apply ``operations`` in order, atomically"""

    @abstractmethod
    async def get(self, address: str) -> Optional[Dict[str, Any]]:
        """Return the body at ``address`` or None"""

    @abstractmethod
    async def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        """Return {document_id: body} for every document in a collection"""

    async def close(self) -> None:
        pass


class InMemoryDocumentStore(DocumentStore):
    """
    Store kept in a dictionary keyed by full address.

    Commits are applied to a copy which replaces the live state only when
    every operation succeeded. ``commits`` records the operations of each
    successful commit; ``fail_next_commits`` makes the next N commits raise
    (for failure simulations).
    """

    name = "memory"

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.commits: List[List[BatchOperation]] = []
        self.fail_next_commits = 0

    async def commit(self, operations: Sequence[BatchOperation]) -> None:
        if self.fail_next_commits > 0:
            self.fail_next_commits -= 1
            raise ConnectionError("Simulated store failure")

        staged = deepcopy(self.documents)
        for operation in operations:
            result = apply_operation(staged.get(operation.address), operation)
            if result is None:
                staged.pop(operation.address, None)
            else:
                staged[operation.address] = result

        self.documents = staged
        self.commits.append(list(operations))
        logger.debug(f"In-memory commit applied {len(operations)} operations")

    async def get(self, address: str) -> Optional[Dict[str, Any]]:
        parse_address(address)
        document = self.documents.get(address)
        return deepcopy(document) if document is not None else None

    async def list_collection(self, collection_path: str) -> Dict[str, Dict[str, Any]]:
        prefix = f"{collection_path}/"
        return {
            address[len(prefix):]: deepcopy(body)
            for address, body in self.documents.items()
            if address.startswith(prefix) and "/" not in address[len(prefix):]
        }
