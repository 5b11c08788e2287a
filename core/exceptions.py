"""
Custom exceptions for the ETL pipeline with structured error context.

Every exception carries a human-readable message, a context dictionary
and (optionally) the original exception that caused it, so failures can
be logged with full detail and serialized with ``to_dict()``.

Exception Hierarchy:
    ETLException (base)
    ├── ValidationError              (precondition failure, blocks the run)
    ├── AddressError                 (malformed document path)
    ├── ExtractionError
    │   ├── ApiError
    │   │   ├── TransientRemoteError
    │   │   │   └── RateLimitError
    │   │   ├── NotFoundError
    │   │   └── BadRequestError
    │   ├── DataFormatError
    │   └── UnrecognizedShapeError
    ├── TransformationError
    │   └── PartialItemError
    ├── LoadError
    │   ├── BatchCommitError
    │   └── DocumentNotFoundError
    ├── FatalPipelineError
    ├── ProgressStateError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, address, phase, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(ETLException):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts and connection resets
    - Rate limiting (HTTP 429)
    - Service unavailable (HTTP 5xx)
    """
    pass


class NonRetryableError(ETLException):
    """
    Mixin for errors that should NOT trigger retry logic.

    Use this for permanent errors like:
    - Resource not found (HTTP 404) or bad request (HTTP 400)
    - Malformed document addresses
    - Response payloads with an unknown shape
    """
    pass


# ============================================================================
# Precondition Errors
# ============================================================================

class ValidationError(NonRetryableError):
    """
    Raised when a pipeline's precondition checks fail.

    The run is aborted before extraction. ``errors`` holds every
    validation message reported by the processor.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.errors = list(errors or [])
        if self.errors:
            message = f"{message}: {', '.join(self.errors)}"
        super().__init__(message, context, original_exception)
        self.context["errors"] = self.errors


class AddressError(NonRetryableError):
    """
    Raised when a document address does not have an even number of
    ``/``-delimited segments (alternating collection/document).
    """

    def __init__(self, address: str, context: Optional[Dict[str, Any]] = None):
        self.address = address
        super().__init__(
            f"Invalid document address '{address}': "
            "expected an even number of segments (collection/document)",
            context
        )
        self.context["address"] = address


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class ApiError(ExtractionError):
    """
    Exception raised when an upstream API request fails.

    Context should include:
        - endpoint: The API path that failed
        - status_code: HTTP status code (if a response was received)
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        self.endpoint = endpoint
        if status_code is not None:
            self.context["status_code"] = status_code
        if endpoint is not None:
            self.context["endpoint"] = endpoint


class TransientRemoteError(RetryableError, ApiError):
    """Network, timeout or server-side failures that should be retried."""
    pass


class RateLimitError(TransientRemoteError):
    """Rate limiting errors (HTTP 429)."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        retry_after: Optional[float] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, 429, endpoint, context, original_exception)
        self.retry_after = retry_after
        if retry_after:
            self.context["retry_after"] = retry_after


class NotFoundError(NonRetryableError, ApiError):
    """Resource not found (HTTP 404). Not retried."""

    def __init__(self, endpoint: str, message: str = "Resource not found"):
        super().__init__(message, 404, endpoint)


class BadRequestError(NonRetryableError, ApiError):
    """Bad request (HTTP 400), usually invalid parameters. Not retried."""

    def __init__(self, endpoint: str, message: str = "Bad request"):
        super().__init__(message, 400, endpoint)


class DataFormatError(NonRetryableError, ExtractionError):
    """Response body could not be decoded (e.g. not JSON)."""
    pass


class UnrecognizedShapeError(NonRetryableError, ExtractionError):
    """
    Raised when an upstream payload matches none of the known response
    shapes.

    Context should include:
        - path: The key path being decoded
        - failed_at: The key at which decoding stopped
        - found_type: The type found at that point
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class PartialItemError(TransformationError):
    """
    A single item of a collection failed to extract or transform.

    Recovered locally by the item loop: counted, logged and excluded
    from the output. Never escapes the loop.
    """

    def __init__(
        self,
        message: str,
        item_key: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.item_key = item_key
        if item_key is not None:
            self.context["item_key"] = item_key


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class BatchCommitError(LoadError):
    """
    Exception raised when a batch commit fails.

    The batch is discarded after the failed attempt. Context includes:
        - operation_count: Number of operations in the discarded batch
        - addresses: Addresses of the discarded operations, for reconciliation
        - store: Name of the document store
    """
    pass


class DocumentNotFoundError(LoadError):
    """An update targeted a document that does not exist."""
    pass


# ============================================================================
# Pipeline Errors
# ============================================================================

class FatalPipelineError(ETLException):
    """
    Any failure escaping the extract, transform or load phase.

    ``phase`` names the phase that failed; the triggering exception is
    available as ``original_exception`` (and ``__cause__``).
    """

    def __init__(
        self,
        message: str,
        phase: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.phase = phase
        self.context["phase"] = phase


class ProgressStateError(ETLException):
    """A progress event was emitted after the run reached a terminal status."""
    pass
