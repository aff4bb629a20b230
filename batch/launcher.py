"""
Job launcher: validates parameters, starts or resumes the job run, and runs
the job's steps in order.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy.orm import sessionmaker

from batch.checkpoint import CheckpointKey
from batch.job import JobContext, JobDefinition
from batch.jobs import get_job
from batch.pipeline import ChunkedPipeline, RunResult
from batch.repository import JobRepository
from core.config import Settings
from core.exceptions import BatchException
from models.base import JobStatus

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    job_name: str
    run_id: int
    run_number: int
    instance_key: str
    status: JobStatus
    resumed: bool = False
    cause: Optional[BatchException] = None
    steps: List[RunResult] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def read_count(self) -> int:
        return sum(step.read_count for step in self.steps)

    @property
    def write_count(self) -> int:
        return sum(step.write_count for step in self.steps)


class JobLauncher:
    """
    Runs registered jobs against a repository.

    Responsibilities:
    - Fail fast on missing or invalid parameters (before any I/O)
    - Start a fresh run, or resume the last failed run of the same instance
    - Run steps in order, skipping steps a resumed run already completed
    - Stop at the first failed step and record the run outcome
    """

    def __init__(
        self,
        repository: JobRepository,
        session_factory: sessionmaker,
        settings: Settings,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.repository = repository
        self.session_factory = session_factory
        self.settings = settings
        self.cancel_event = cancel_event

    def run(self, job: Union[str, JobDefinition], parameters: Mapping[str, Any]) -> JobResult:
        """
        Args:
            job: Job name or definition
            parameters: Raw parameters, keyed by their dashed names

        Raises:
            JobNotFoundError: Unknown job name
            JobParametersError: Missing or invalid parameters
        """
        definition = get_job(job) if isinstance(job, str) else job
        params = definition.validate(parameters)
        instance_key = definition.instance_key(params)

        run = self.repository.start_run(
            definition.name,
            instance_key,
            params.model_dump(mode="json", by_alias=True),
        )
        context = JobContext(
            session_factory=self.session_factory,
            settings=self.settings,
            run=run,
            cancel_event=self.cancel_event,
        )
        logger.info(
            f"{'Resuming' if run.resumed else 'Launching'} {definition.name} "
            f"(run {run.run_id}, run number {run.run_number})"
        )

        results: List[RunResult] = []
        cause: Optional[BatchException] = None

        for step in definition.steps:
            try:
                components = step.build(context, params)
            except BatchException as e:
                cause = e
                break
            except Exception as e:
                cause = BatchException(
                    f"Failed to build step {step.name}",
                    context={"job_name": definition.name, "step": step.name},
                    original_exception=e
                )
                break

            pipeline = ChunkedPipeline(
                name=step.name,
                reader=components.reader,
                writer=components.writer,
                processor=components.processor,
                chunk_size=self.settings.chunk_size_for(step.name, params.chunk_size),
                checkpoint_store=self.repository,
                checkpoint_key=CheckpointKey(definition.name, instance_key, step.name),
                save_state=step.save_state,
                cancel_event=self.cancel_event,
            )
            result = pipeline.run()
            results.append(result)
            if result.failed:
                cause = result.cause
                break

        status = JobStatus.FAILED if cause is not None else JobStatus.COMPLETED
        job_result = JobResult(
            job_name=definition.name,
            run_id=run.run_id,
            run_number=run.run_number,
            instance_key=instance_key,
            status=status,
            resumed=run.resumed,
            cause=cause,
            steps=results,
        )

        self.repository.finish_run(
            run.run_id,
            status,
            read_count=job_result.read_count,
            write_count=job_result.write_count,
            error_message=str(cause) if cause is not None else None,
        )

        if cause is not None:
            logger.error(f"{definition.name} failed: {cause.to_dict()}")
        else:
            logger.info(
                f"{definition.name} completed: read={job_result.read_count}, "
                f"written={job_result.write_count}"
            )
        return job_result
