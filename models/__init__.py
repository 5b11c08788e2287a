"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums
          (ProcessingStatus, OperationKind, DestinationType)
    document: Documents of the hierarchical document store

Database Schema:
    A hierarchical document address ("collection/doc/collection/doc") is
    stored as one row per document, keyed by (collection_path, document_id).
    The body uses JSONB on PostgreSQL and JSON on other dialects.

Usage:
    from models.document import StoredDocument
    from models.base import ProcessingStatus, OperationKind
"""

__all__ = [
    "Base",
    "ProcessingStatus",
    "OperationKind",
    "DestinationType",
    "StoredDocument",
]
