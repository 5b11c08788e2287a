"""
Pydantic schemas for data validation and serialization.

Schemas:
    pipeline: Run options, tunables, progress events and run results
    storage: Document addresses, batch operations and load results
    senado: Transformed Senate records

Usage:
    from schemas.pipeline import PipelineOptions, PipelineConfig, ProcessResult
    from schemas.storage import parse_address, BatchOperation

Example:
    # Addresses alternate collection/document segments
    address = parse_address("congressoNacional/senadoFederal/metadata/senadores")
    assert address.document_id == "senadores"
"""

__all__ = [
    "PipelineOptions",
    "PipelineConfig",
    "ProgressEvent",
    "ValidationResult",
    "ProcessResult",
    "DocumentAddress",
    "BatchOperation",
    "BatchResult",
    "LoadResult",
    "Senator",
]
