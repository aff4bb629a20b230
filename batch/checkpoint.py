"""
Checkpoint contract consumed by the chunked pipeline
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.base import JobStatus


@dataclass(frozen=True)
class CheckpointKey:
    """Identifies one step of one job instance"""
    job_name: str
    instance_key: str
    step_name: str


@dataclass
class CheckpointState:
    """
    Committed progress of a step.

    Attributes:
        read_count: Units consumed from the reader up to the last commit;
            replayed and discarded on restart
        write_count: Units handed to the writer up to the last commit
        chunk_count: Chunks committed
        writer_state: Writer snapshot taken after the last committed write
    """
    status: JobStatus = JobStatus.RUNNING
    read_count: int = 0
    write_count: int = 0
    chunk_count: int = 0
    writer_state: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None


class CheckpointStore(ABC):
    """Durable per-step progress"""

    @abstractmethod
    def load(self, key: CheckpointKey) -> Optional[CheckpointState]:
        """Return the last saved state, or None if the step never committed"""

    @abstractmethod
    def save(self, key: CheckpointKey, state: CheckpointState) -> None:
        """Persist ``state``; raise CheckpointError on failure"""
