from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class ProcessingStatus(str, enum.Enum):
    """Pipeline run status reported through progress events"""
    STARTED = "started"
    EXTRACTING = "extracting"
    TRANSFORMING = "transforming"
    LOADING = "loading"
    FINISHED = "finished"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.FINISHED, ProcessingStatus.FAILED)


class OperationKind(str, enum.Enum):
    """Write operations accepted by a document store batch"""
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


class DestinationType(str, enum.Enum):
    """Where a pipeline run persists its documents"""
    DATABASE = "database"  # SQL-backed document store
    LOCAL = "local"        # JSON files on the local disk
    MEMORY = "memory"      # In-process store (development and tests)
