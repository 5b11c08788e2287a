"""
Pipeline for the senators currently in office
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import re

from core.exceptions import ExtractionError
from ingestion.base import ETLProcessor
from ingestion.context import PipelineContext
from ingestion.extractors.senado_client import SenadoAPIClient
from ingestion.extractors.shapes import decode_collection
from ingestion.loaders.document_store import DocumentStore
from ingestion.transformers.senators import compute_statistics, senator_code, transform_senator
from models.base import ProcessingStatus
from schemas.pipeline import ValidationResult
from schemas.senado import Senator, SenatorStatistics
from schemas.storage import LoadResult

CURRENT_SENATORS_PATH = "ListaParlamentarEmExercicio/Parlamentares/Parlamentar"
SENATOR_DETAIL_PATH = "DetalheParlamentar/Parlamentar"

METADATA_ADDRESS = "congressoNacional/senadoFederal/metadata/senadores"
CURRENT_SUMMARY_ADDRESS = "congressoNacional/senadoFederal/atual/senadores"
CURRENT_COLLECTION = "congressoNacional/senadoFederal/atual/senadores/itens"
LEGISLATURE_COLLECTION = "congressoNacional/senadoFederal/legislaturas/{legislature}/senadores"

STATE_PATTERN = re.compile(r"^[A-Z]{2}$")
PARTY_PATTERN = re.compile(r"^[A-Z]{2,10}$")

# The 57th legislature started on 2023-02-01; each one lasts four years
_REFERENCE_LEGISLATURE = 57
_REFERENCE_YEAR = 2023


def current_legislature(now: datetime) -> int:
    """Number of the legislature in course at ``now``"""
    year = now.year if (now.month, now.day) >= (2, 1) else now.year - 1
    return _REFERENCE_LEGISLATURE + (year - _REFERENCE_YEAR) // 4


@dataclass
class ExtractedSenators:
    senators: List[Dict[str, Any]]
    legislature: int
    details: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    total_available: int = 0


@dataclass
class TransformedSenators:
    senators: List[Senator]
    statistics: SenatorStatistics
    legislature: int


class SenatorsProcessor(ETLProcessor[ExtractedSenators, TransformedSenators]):
    """
    Sitting senators: list, optional per-senator details, statistics.

    Options used: legislature, party, state, senator, limit, details.
    """

    process_name = "Current senators"

    def __init__(
        self,
        context: PipelineContext,
        api_client: SenadoAPIClient,
        store: Optional[DocumentStore] = None
    ):
        super().__init__(context, store)
        self.api_client = api_client

    async def validate(self) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []
        options = self.options

        if options.legislature is not None:
            if not self.config.legislature_min <= options.legislature <= self.config.legislature_max:
                errors.append(
                    f"Legislature {options.legislature} outside valid range "
                    f"{self.config.legislature_min}-{self.config.legislature_max}"
                )

        if options.party and not PARTY_PATTERN.match(options.party):
            warnings.append("Party format may be wrong (use acronyms such as PT, PSDB)")

        if options.state and not STATE_PATTERN.match(options.state):
            errors.append("State must be exactly 2 upper-case letters (e.g. SP, RJ, MG)")

        if options.limit is not None and options.limit < 0:
            errors.append(f"Limit must not be negative (got {options.limit})")

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    # ------------------------------------------------------------------
    # Extract
    # ------------------------------------------------------------------

    def apply_filters(self, senators: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        filtered = list(senators)
        options = self.options

        def identification(raw: Dict[str, Any]) -> Dict[str, Any]:
            return raw.get("IdentificacaoParlamentar") or {}

        if options.party:
            filtered = [
                s for s in filtered
                if str(identification(s).get("SiglaPartidoParlamentar", "")).upper() == options.party
            ]
            self.logger.info(f"Filtered by party {options.party}: {len(filtered)} senators")

        if options.state:
            filtered = [
                s for s in filtered
                if str(identification(s).get("UfParlamentar", "")).upper() == options.state
            ]
            self.logger.info(f"Filtered by state {options.state}: {len(filtered)} senators")

        if options.senator:
            filtered = [s for s in filtered if senator_code(s) == str(options.senator)]
            self.logger.info(f"Filtered by senator {options.senator}: {len(filtered)} senators")

        if options.limit:
            filtered = filtered[:options.limit]
            self.logger.info(f"Limited to {len(filtered)} senators")

        return filtered

    async def extract_details(self, senators: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        """Fetch /senador/{code} for each senator, pacing between requests"""
        details: Dict[str, Dict[str, Any]] = {}
        total = len(senators)

        for processed, raw in enumerate(senators, start=1):
            code = senator_code(raw)
            try:
                if code:
                    payload = await self.api_client.get_senator(code)
                    decoded = decode_collection(payload, SENATOR_DETAIL_PATH, f"senator {code} details")
                    if decoded.items:
                        details[code] = decoded.items[0]
            except Exception as e:
                self.stats.warnings += 1
                self.stats.record_error("extract", e, item_key=code)
                self.logger.warning(f"Failed to extract details for senator {code}: {e}")

            # The list request counts as the first unit of work
            self.emit_progress(
                ProcessingStatus.EXTRACTING,
                self.phase_percent(ProcessingStatus.EXTRACTING, processed + 1, total + 1),
                f"Extracted details of {processed}/{total} senators"
            )

            if processed < total:
                await self.api_client.fetcher.pace()

        return details

    async def extract(self) -> ExtractedSenators:
        legislature = self.options.legislature or current_legislature(self.clock.now())
        self.logger.info(f"Extracting sitting senators of legislature {legislature}")

        payload = await self.api_client.list_current_senators()
        decoded = decode_collection(payload, CURRENT_SENATORS_PATH, "current senators")

        if not decoded.items:
            raise ExtractionError(
                "No sitting senators found",
                context={"shape": decoded.shape.value}
            )

        self.stats.extracted = len(decoded.items)
        senators = self.apply_filters(decoded.items)
        self.logger.info(f"{len(senators)} senators selected out of {len(decoded.items)}")

        total_units = len(senators) + 1 if self.options.details else 1
        self.emit_progress(
            ProcessingStatus.EXTRACTING,
            self.phase_percent(ProcessingStatus.EXTRACTING, 1, total_units),
            f"Extracted list of {len(decoded.items)} senators"
        )

        details: Dict[str, Dict[str, Any]] = {}
        if self.options.details and senators:
            details = await self.extract_details(senators)

        return ExtractedSenators(
            senators=senators,
            legislature=legislature,
            details=details,
            total_available=len(decoded.items),
        )

    # ------------------------------------------------------------------
    # Transform
    # ------------------------------------------------------------------

    async def transform(self, data: ExtractedSenators) -> TransformedSenators:
        self.logger.info(f"Transforming {len(data.senators)} senators")

        senators = self.transform_items(
            data.senators,
            lambda raw: transform_senator(raw, data.details.get(senator_code(raw) or "")),
            key=senator_code,
            label="senator",
        )
        statistics = compute_statistics(senators)

        self.logger.info(f"{len(senators)} senators transformed")
        self.logger.info(
            f"Statistics: by party={statistics.by_party} by state={statistics.by_state}"
        )
        return TransformedSenators(senators=senators, statistics=statistics, legislature=data.legislature)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load(self, data: TransformedSenators) -> LoadResult:
        timestamp = self.clock.now().isoformat()
        legislature_collection = LEGISLATURE_COLLECTION.format(legislature=data.legislature)
        total = len(data.senators)

        self.logger.info(f"Saving {total} senators of legislature {data.legislature}")

        writer = self.create_writer(label=CURRENT_COLLECTION)
        async with writer:
            await writer.set(METADATA_ADDRESS, {
                "last_update": timestamp,
                "total_records": total,
                "legislature": data.legislature,
                "status": "success",
            })
            await writer.set(CURRENT_SUMMARY_ADDRESS, {
                "timestamp": timestamp,
                "legislature": data.legislature,
                "total": total,
                "kind": "senators",
                "description": "Sitting senators",
                "statistics": data.statistics.model_dump(),
            })

            for index, senator in enumerate(data.senators, start=1):
                document = {**senator.model_dump(), "legislature": data.legislature}
                await writer.set(f"{legislature_collection}/{senator.code}", document)
                await writer.set(f"{CURRENT_COLLECTION}/{senator.code}", document)

                self.emit_progress(
                    ProcessingStatus.LOADING,
                    self.phase_percent(ProcessingStatus.LOADING, index, total),
                    f"Queued {index}/{total} senators"
                )

        return writer.summary(items_loaded=total, legislature=data.legislature)

    def result_details(self, data: TransformedSenators) -> Dict[str, Any]:
        return {
            "legislature": data.legislature,
            "statistics": data.statistics.model_dump(),
        }
