"""
Pydantic schemas for pipeline options, configuration and results
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime
from models.base import ProcessingStatus, DestinationType


# Default share of the 0-100 progress range given to each phase: (offset, weight)
DEFAULT_PROGRESS_PLAN: Dict[ProcessingStatus, Tuple[int, int]] = {
    ProcessingStatus.EXTRACTING: (0, 50),
    ProcessingStatus.TRANSFORMING: (50, 25),
    ProcessingStatus.LOADING: (75, 25),
}


class PipelineOptions(BaseModel):
    """Run-scoped filters and switches chosen by the caller"""

    destination: DestinationType = DestinationType.DATABASE
    limit: Optional[int] = None
    legislature: Optional[int] = None
    senator: Optional[str] = None
    party: Optional[str] = None
    state: Optional[str] = None
    details: bool = False
    dry_run: bool = False
    verbose: bool = False

    @validator("party", "state", pre=True)
    def normalize_code(cls, v):
        """Parties and states are compared upper-case"""
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v


class PipelineConfig(BaseModel):
    """Tunables shared by every phase of a run"""

    max_operations: int = Field(250, ge=1, le=500)
    pause_between_batches: float = Field(0.5, ge=0)
    max_retries: int = Field(5, ge=1, le=10)
    retry_delay: float = Field(2.0, ge=0)
    pause_between_requests: float = Field(3.0, ge=0)
    request_timeout: float = Field(30.0, gt=0)
    legislature_min: int = 1
    legislature_max: int = 58
    progress_plan: Dict[ProcessingStatus, Tuple[int, int]] = Field(
        default_factory=lambda: dict(DEFAULT_PROGRESS_PLAN)
    )

    @classmethod
    def from_settings(cls, settings, **overrides) -> "PipelineConfig":
        """Build a config from application settings"""
        values = {
            "max_operations": settings.STORE_MAX_OPERATIONS,
            "pause_between_batches": settings.STORE_PAUSE_BETWEEN_BATCHES,
            "max_retries": settings.SENADO_MAX_RETRIES,
            "retry_delay": settings.SENADO_RETRY_DELAY,
            "pause_between_requests": settings.SENADO_PAUSE_BETWEEN_REQUESTS,
            "request_timeout": settings.SENADO_TIMEOUT,
            "legislature_min": settings.LEGISLATURE_MIN,
            "legislature_max": settings.LEGISLATURE_MAX,
        }
        values.update(overrides)
        return cls(**values)


class ProgressEvent(BaseModel):
    """A progress notification delivered to listeners"""

    status: ProcessingStatus
    percent: int = Field(..., ge=0, le=100)
    message: str
    timestamp: datetime
    details: Optional[Dict[str, Any]] = None


class ValidationResult(BaseModel):
    """Outcome of a pipeline's precondition checks"""

    valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PhaseTimings(BaseModel):
    """Elapsed seconds per phase"""

    validate_seconds: float = 0.0
    extract_seconds: float = 0.0
    transform_seconds: float = 0.0
    load_seconds: float = 0.0
    total_seconds: float = 0.0


class ProcessResult(BaseModel):
    """Summary returned by a completed pipeline run"""

    status: str = Field(..., pattern="^(success|partial_success)$")
    destination: str
    total_processed: int = 0
    successes: int = 0
    failures: int = 0
    warnings: int = 0
    timings: PhaseTimings = Field(default_factory=PhaseTimings)
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)
