"""
Job definitions: named, parameterized sequences of chunked steps.

A job declares a pydantic parameters model and an ordered list of steps.
Each step knows how to build its reader, processor and writer from the job
context, so components are created per run and never shared between runs.
"""

import hashlib
import json
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import sessionmaker

from batch.item import ItemReader, ItemWriter
from batch.repository import RunInfo
from core.config import Settings
from core.exceptions import JobParametersError


class JobParameters(BaseModel):
    """
    Base parameters shared by every job.

    Parameters are passed with their dashed names (``chunk-size``,
    ``customer-file``...). ``chunk-size`` tunes the run but does not
    identify the job instance.
    """

    chunk_size: Optional[int] = Field(None, alias="chunk-size", gt=0)

    class Config:
        populate_by_name = True
        extra = "ignore"

    def identifying(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"chunk_size"})


@dataclass
class JobContext:
    """What a step builder may use; passed explicitly, never global"""
    session_factory: sessionmaker
    settings: Settings
    run: RunInfo
    cancel_event: Optional[threading.Event] = None


@dataclass
class StepComponents:
    reader: ItemReader
    writer: ItemWriter
    processor: Optional[Callable[[Any], Any]] = None


@dataclass
class StepDefinition:
    """
    Attributes:
        build: ``(context, parameters) -> StepComponents``
        save_state: False when the reader cannot replay its input
            (restart then continues with what remains instead of skipping)
    """
    name: str
    build: Callable[[JobContext, JobParameters], StepComponents]
    save_state: bool = True


@dataclass
class JobDefinition:
    name: str
    parameters: Type[JobParameters]
    steps: List[StepDefinition] = field(default_factory=list)
    description: str = ""

    def validate(self, raw: Mapping[str, Any]) -> JobParameters:
        """Parse raw parameters, failing before any I/O when invalid"""
        try:
            return self.parameters.model_validate(dict(raw))
        except ValidationError as e:
            missing, invalid = [], []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                (missing if error["type"] == "missing" else invalid).append(location)
            raise JobParametersError(
                f"Invalid parameters for {self.name}",
                context={"job_name": self.name, "missing": missing, "invalid": invalid},
                original_exception=e
            )

    def instance_key(self, parameters: JobParameters) -> str:
        """SHA-256 of the canonical identifying parameters"""
        canonical = json.dumps(parameters.identifying(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
