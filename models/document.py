from sqlalchemy import Column, BigInteger, Integer, String, DateTime, JSON, Index
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime, timezone
from models.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    """
    One document of the hierarchical document store.

    Design:
    - A document address "a/b/c/d" is stored as collection_path="a/b/c"
      and document_id="d"
    - (collection_path, document_id) is unique, so a document has exactly
      one row
    - data holds the document body (JSONB on PostgreSQL, JSON elsewhere)
    """
    __tablename__ = "documents"

    # SQLite only autoincrements INTEGER primary keys
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    # Address
    collection_path = Column(String(1024), nullable=False, index=True)
    document_id = Column(String(255), nullable=False)

    # Body
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_document_address", "collection_path", "document_id", unique=True),
    )

    @property
    def address(self) -> str:
        return f"{self.collection_path}/{self.document_id}"
