"""
Abstract base class for pipelines: validate, extract, transform, load.

This module provides:
- Phase sequencing with timing of every phase
- Partial failure support (one bad item never aborts the run)
- Wrapping of phase failures into FatalPipelineError with the cause kept
- Progress events on every phase transition
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar
import logging

from core.exceptions import (
    ETLException,
    FatalPipelineError,
    PartialItemError,
    ValidationError,
)
from ingestion.context import PipelineContext
from ingestion.loaders.batch_writer import BatchWriter
from ingestion.loaders.document_store import DocumentStore
from ingestion.progress import ProgressCallback, ProgressChannel
from models.base import ProcessingStatus
from schemas.pipeline import ProcessResult, ProgressEvent, ValidationResult
from schemas.storage import LoadResult

logger = logging.getLogger(__name__)

RawT = TypeVar("RawT")
TransformedT = TypeVar("TransformedT")
ItemT = TypeVar("ItemT")
OutT = TypeVar("OutT")


class ETLProcessor(ABC, Generic[RawT, TransformedT]):
    """
    Template for one entity pipeline.

    Subclasses implement ``validate``, ``extract``, ``transform`` and
    ``load``; ``run`` sequences them.

    Failure handling:
    - validate: an invalid result raises ValidationError before extract
    - extract/transform/load: any escaping error becomes
      FatalPipelineError(phase=...) with the original as its cause
    - per-item transform failures are counted and skipped
      (see ``transform_items``)
    """

    process_name: str = "pipeline"

    def __init__(self, context: PipelineContext, store: Optional[DocumentStore] = None):
        self.context = context
        self.store = store
        self.logger = context.logger
        self.progress = ProgressChannel(clock=context.clock)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    @abstractmethod
    async def validate(self) -> ValidationResult:
        """Check preconditions before any remote call"""

    @abstractmethod
    async def extract(self) -> RawT:
        """Fetch raw data"""

    @abstractmethod
    async def transform(self, data: RawT) -> TransformedT:
        """Reshape raw data"""

    @abstractmethod
    async def load(self, data: TransformedT) -> LoadResult:
        """Persist transformed data through ``self.store``"""

    def result_details(self, data: TransformedT) -> Dict[str, Any]:
        """Extra entries for ProcessResult.details"""
        return {}

    # ------------------------------------------------------------------
    # Shortcuts
    # ------------------------------------------------------------------

    @property
    def options(self):
        return self.context.options

    @property
    def config(self):
        return self.context.config

    @property
    def stats(self):
        return self.context.stats

    @property
    def clock(self):
        return self.context.clock

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def on_progress(self, callback: ProgressCallback) -> None:
        self.progress.subscribe(callback)

    def emit_progress(
        self,
        status: ProcessingStatus,
        percent: float,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> ProgressEvent:
        return self.progress.emit(status, percent, message, details)

    def phase_percent(self, status: ProcessingStatus, completed: int, total: int) -> int:
        """Map progress inside a phase onto the run's 0-100 range"""
        offset, weight = self.config.progress_plan.get(status, (0, 0))
        if total <= 0:
            return offset + weight
        completed = max(0, min(completed, total))
        return offset + round(completed / total * weight)

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def create_writer(self, label: Optional[str] = None) -> BatchWriter:
        if self.store is None:
            raise ValueError(f"{self.process_name}: no document store configured")
        return BatchWriter.from_config(self.store, self.config, clock=self.clock, label=label)

    def record_item_failure(self, phase: str, error: Exception, item_key: Any) -> None:
        """Count a recovered per-item failure"""
        self.stats.failures += 1
        self.stats.warnings += 1
        detail = self.stats.record_error(phase, error, item_key=item_key)
        self.logger.warning(
            f"{phase.capitalize()} failed for item {item_key}: {detail['error_message']}",
            extra={"error_context": detail}
        )

    def transform_items(
        self,
        items: List[ItemT],
        transform_item: Callable[[ItemT], OutT],
        key: Optional[Callable[[ItemT], Any]] = None,
        label: str = "item"
    ) -> List[OutT]:
        """
        Apply ``transform_item`` to every item, skipping the ones that fail.

        A failing item is wrapped as PartialItemError, counted as a failure
        and a warning, logged, and left out of the result.
        """
        results: List[OutT] = []
        total = len(items)

        for index, item in enumerate(items, start=1):
            item_key = self._item_key(item, key, index)
            try:
                results.append(transform_item(item))
            except Exception as e:
                error = e if isinstance(e, PartialItemError) else PartialItemError(
                    f"Failed to transform {label} {item_key}",
                    item_key=item_key,
                    original_exception=e
                )
                self.record_item_failure("transform", error, item_key)

            self.emit_progress(
                ProcessingStatus.TRANSFORMING,
                self.phase_percent(ProcessingStatus.TRANSFORMING, index, total),
                f"Transformed {index}/{total} {label}s"
            )

        self.stats.transformed += len(results)
        return results

    @staticmethod
    def _item_key(item: Any, key: Optional[Callable[[Any], Any]], index: int) -> Any:
        if key is None:
            return index
        try:
            return key(item)
        except Exception:
            return index

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _elapsed(self, started: float) -> float:
        return self.clock.monotonic() - started

    def _fail(self, message: str) -> None:
        last = self.progress.last_event
        if last is None or not last.status.is_terminal:
            self.emit_progress(ProcessingStatus.FAILED, self.progress.last_percent, message)

    async def _run_phase(
        self,
        phase: str,
        status: ProcessingStatus,
        operation: Callable[[], Awaitable[Any]],
        run_started: float
    ) -> Any:
        offset, _ = self.config.progress_plan.get(status, (0, 0))
        started = self.clock.monotonic()
        try:
            self.emit_progress(status, offset, f"Starting {phase}")
            result = await operation()
        except Exception as e:
            self.stats.timings[phase] = self._elapsed(started)
            self.stats.timings["total"] = self._elapsed(run_started)

            error = e if isinstance(e, FatalPipelineError) else FatalPipelineError(
                f"{self.process_name}: {phase} failed: {getattr(e, 'message', str(e))}",
                phase=phase,
                context={"processor": self.process_name},
                original_exception=e
            )
            self.stats.record_error(phase, e)
            self.logger.error(
                f"{self.process_name}: {phase} phase failed: {error.message}",
                extra={"error_context": error.to_dict()}
            )
            self._fail(f"{phase} failed")
            raise error

        self.stats.timings[phase] = self._elapsed(started)
        return result

    async def run(self) -> ProcessResult:
        """
        Run validate, extract, transform and load in sequence.

        Returns:
            ProcessResult with status "success" or "partial_success"

        Raises:
            ValidationError: If validation failed (nothing else ran)
            FatalPipelineError: If extract, transform or load failed
        """
        self.stats.reset()
        self.progress.reset()
        run_started = self.clock.monotonic()

        self.logger.info(f"Starting {self.process_name}")
        self.emit_progress(ProcessingStatus.STARTED, 0, f"Starting {self.process_name}")

        # --------------------------------------------------
        # PHASE 1: VALIDATION
        # --------------------------------------------------
        started = self.clock.monotonic()
        try:
            validation = await self.validate()
        except ETLException:
            self.stats.timings["validate"] = self._elapsed(started)
            self.stats.timings["total"] = self._elapsed(run_started)
            self._fail("validation failed")
            raise
        except Exception as e:
            self.stats.timings["validate"] = self._elapsed(started)
            self.stats.timings["total"] = self._elapsed(run_started)
            self._fail("validation failed")
            raise FatalPipelineError(
                f"{self.process_name}: validation failed: {e}",
                phase="validate",
                original_exception=e
            )
        self.stats.timings["validate"] = self._elapsed(started)

        for warning in validation.warnings:
            self.stats.warnings += 1
            self.logger.warning(f"Validation warning: {warning}")

        if not validation.valid:
            self.stats.timings["total"] = self._elapsed(run_started)
            for message in validation.errors:
                self.logger.error(f"Validation error: {message}")
            self._fail("validation failed")
            raise ValidationError(
                f"{self.process_name}: validation failed",
                errors=validation.errors,
                context={"processor": self.process_name}
            )

        # --------------------------------------------------
        # PHASE 2-4: EXTRACT, TRANSFORM, LOAD
        # --------------------------------------------------
        raw = await self._run_phase("extract", ProcessingStatus.EXTRACTING, self.extract, run_started)
        transformed = await self._run_phase(
            "transform", ProcessingStatus.TRANSFORMING, lambda: self.transform(raw), run_started
        )

        if self.options.dry_run:
            self.logger.info("Dry run: skipping load phase")
            destination = "dry-run"
            load_result = None
        else:
            load_result = await self._run_phase(
                "load", ProcessingStatus.LOADING, lambda: self.load(transformed), run_started
            )
            destination = load_result.destination if load_result else self.options.destination.value
            if load_result is not None:
                self.stats.loaded = load_result.items_loaded

        self.stats.timings["total"] = self._elapsed(run_started)
        self.stats.successes = self.stats.transformed if self.options.dry_run else self.stats.loaded

        details = self.result_details(transformed)
        if load_result is not None:
            details["load"] = load_result.model_dump()

        result = ProcessResult(
            status="success" if self.stats.failures == 0 else "partial_success",
            destination=destination,
            total_processed=self.stats.transformed + self.stats.failures,
            successes=self.stats.successes,
            failures=self.stats.failures,
            warnings=self.stats.warnings,
            timings=self.stats.phase_timings(),
            errors=list(self.stats.errors),
            details=details,
        )

        self.emit_progress(ProcessingStatus.FINISHED, 100, f"{self.process_name} finished")
        self._log_result(result)
        return result

    def _log_result(self, result: ProcessResult) -> None:
        timings = result.timings
        self.logger.info(
            f"{self.process_name} completed: {result.status} - "
            f"Destination: {result.destination}, Processed: {result.total_processed}, "
            f"Successes: {result.successes}, Failures: {result.failures}, "
            f"Warnings: {result.warnings}"
        )
        self.logger.info(
            f"Timings (s): validate={timings.validate_seconds:.2f} "
            f"extract={timings.extract_seconds:.2f} "
            f"transform={timings.transform_seconds:.2f} "
            f"load={timings.load_seconds:.2f} total={timings.total_seconds:.2f}"
        )
        for error in result.errors[:10]:
            self.logger.warning(f"  [{error['phase']}] {error['error_message']}")
