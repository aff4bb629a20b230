from datetime import datetime, timezone
import enum

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# ENUMS
# ============================================================================

class JobStatus(str, enum.Enum):
    """Job run and step status"""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StagingStatus(str, enum.Enum):
    """batch_staging.processed flag values"""
    NEW = "N"
    DONE = "Y"
