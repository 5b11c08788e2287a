"""
Run context shared by every phase of a pipeline
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from core.clock import Clock
from core.config import settings
from schemas.pipeline import PhaseTimings, PipelineConfig, PipelineOptions


@dataclass
class ProcessingStats:
    """Mutable counters for one run"""

    extracted: int = 0
    transformed: int = 0
    loaded: int = 0
    successes: int = 0
    failures: int = 0
    warnings: int = 0
    skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)

    def reset(self) -> None:
        self.extracted = 0
        self.transformed = 0
        self.loaded = 0
        self.successes = 0
        self.failures = 0
        self.warnings = 0
        self.skipped = 0
        self.errors = []
        self.timings = {}

    def record_error(self, phase: str, error: Exception, **extra) -> Dict[str, Any]:
        detail = {
            "phase": phase,
            "error_type": type(error).__name__,
            "error_message": getattr(error, "message", str(error)),
            **extra
        }
        self.errors.append(detail)
        return detail

    def phase_timings(self) -> PhaseTimings:
        return PhaseTimings(
            validate_seconds=self.timings.get("validate", 0.0),
            extract_seconds=self.timings.get("extract", 0.0),
            transform_seconds=self.timings.get("transform", 0.0),
            load_seconds=self.timings.get("load", 0.0),
            total_seconds=self.timings.get("total", 0.0),
        )


@dataclass
class PipelineContext:
    """Options, tunables, logger, counters and clock of one pipeline run"""

    options: PipelineOptions = field(default_factory=PipelineOptions)
    config: PipelineConfig = field(default_factory=lambda: PipelineConfig.from_settings(settings))
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("ingestion.pipeline"))
    stats: ProcessingStats = field(default_factory=ProcessingStats)
    clock: Clock = field(default_factory=Clock)

    @classmethod
    def create(
        cls,
        options: Optional[PipelineOptions] = None,
        config: Optional[PipelineConfig] = None,
        clock: Optional[Clock] = None,
        logger_name: str = "ingestion.pipeline"
    ) -> "PipelineContext":
        return cls(
            options=options or PipelineOptions(),
            config=config or PipelineConfig.from_settings(settings),
            logger=logging.getLogger(logger_name),
            stats=ProcessingStats(),
            clock=clock or Clock(),
        )
