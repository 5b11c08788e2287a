"""
Schemas for document addresses and batched write operations
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, NamedTuple
from models.base import OperationKind
from core.exceptions import AddressError


class DocumentAddress(NamedTuple):
    """A parsed document address: the collection it lives in and its id"""
    collection_path: str
    document_id: str

    def __str__(self) -> str:
        return f"{self.collection_path}/{self.document_id}"


def parse_address(address: str) -> DocumentAddress:
    """
    Split a document address into (collection path, document id).

    Addresses alternate collection/document segments, so a valid document
    address always has an even number of segments:

        "a/b/c/d" -> ("a/b/c", "d")

    Raises:
        AddressError: If the segment count is odd
    """
    segments = address.split("/")
    if len(segments) % 2 != 0:
        raise AddressError(address)

    return DocumentAddress("/".join(segments[:-1]), segments[-1])


class BatchOperation(BaseModel):
    """One pending write in a batch"""

    kind: OperationKind
    address: str
    collection_path: str
    document_id: str
    payload: Optional[Dict[str, Any]] = None
    merge: bool = False


class BatchResult(BaseModel):
    """Outcome of one successful batch commit"""

    total: int = Field(..., ge=0)
    successes: int = Field(..., ge=0)
    failures: int = Field(0, ge=0)
    duration_seconds: float = 0.0
    addresses: List[str] = Field(default_factory=list)


class LoadResult(BaseModel):
    """Aggregated outcome of a load phase"""

    destination: str
    operations_committed: int = 0
    batches_committed: int = 0
    items_loaded: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)
