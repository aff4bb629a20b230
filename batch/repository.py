"""
Job repository: job run tracking plus the checkpoint store.

A job instance is identified by its name and the hash of its identifying
parameters. Starting an instance whose last run failed (or never finished)
resumes it with the same run number and keeps its step checkpoints; any
other start opens a fresh run with the next run number and clears them.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from batch.checkpoint import CheckpointKey, CheckpointState, CheckpointStore
from core.exceptions import CheckpointError
from models.base import JobStatus, utcnow
from models.job_checkpoint import JobCheckpoint
from models.job_run import JobRun

logger = logging.getLogger(__name__)

RESUMABLE = (JobStatus.FAILED, JobStatus.RUNNING)


@dataclass(frozen=True)
class RunInfo:
    """
    Attributes:
        run_id: Id of this run
        run_number: Sequence number of the instance execution; unchanged
            when a failed run is resumed
        job_id: Stable id shared by a run and all its resumptions
        resumed: True when this run continues a failed one
    """
    run_id: int
    job_name: str
    instance_key: str
    run_number: int
    job_id: int
    resumed: bool = False


def _duration(started_at: datetime, completed_at: datetime) -> float:
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    return (completed_at - started_at).total_seconds()


class JobRepository(CheckpointStore):
    """Run tracking on top of the checkpoint contract"""

    @abstractmethod
    def start_run(self, job_name: str, instance_key: str, parameters: Dict[str, Any]) -> RunInfo:
        pass

    @abstractmethod
    def finish_run(
        self,
        run_id: int,
        status: JobStatus,
        read_count: int = 0,
        write_count: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        pass


class InMemoryJobRepository(JobRepository):
    """Process-local repository, used for tests and one-off runs"""

    def __init__(self):
        self.runs: List[Dict[str, Any]] = []
        self.checkpoints: Dict[CheckpointKey, CheckpointState] = {}

    def start_run(self, job_name: str, instance_key: str, parameters: Dict[str, Any]) -> RunInfo:
        previous = [
            run for run in self.runs
            if run["job_name"] == job_name and run["instance_key"] == instance_key
        ]
        last = previous[-1] if previous else None
        resumed = last is not None and last["status"] in RESUMABLE

        run_id = len(self.runs) + 1
        if resumed:
            run_number, job_id = last["run_number"], last["job_id"]
        else:
            run_number, job_id = (last["run_number"] + 1 if last else 1), run_id
            for key in [k for k in self.checkpoints if k.job_name == job_name and k.instance_key == instance_key]:
                del self.checkpoints[key]

        self.runs.append({
            "id": run_id,
            "job_name": job_name,
            "instance_key": instance_key,
            "run_number": run_number,
            "job_id": job_id,
            "resumed": resumed,
            "status": JobStatus.RUNNING,
            "parameters": dict(parameters),
            "started_at": utcnow(),
        })
        return RunInfo(run_id, job_name, instance_key, run_number, job_id, resumed)

    def finish_run(self, run_id, status, read_count=0, write_count=0, error_message=None) -> None:
        run = self.runs[run_id - 1]
        run.update(
            status=status,
            read_count=read_count,
            write_count=write_count,
            error_message=error_message,
            completed_at=utcnow(),
        )

    def load(self, key: CheckpointKey) -> Optional[CheckpointState]:
        state = self.checkpoints.get(key)
        return replace(state, writer_state=dict(state.writer_state)) if state else None

    def save(self, key: CheckpointKey, state: CheckpointState) -> None:
        self.checkpoints[key] = replace(state, writer_state=dict(state.writer_state))


class SqlJobRepository(JobRepository):
    """
    Repository backed by the ``job_runs`` and ``job_checkpoints`` tables.

    Every call uses its own short session and commits before returning, so
    checkpoints are durable as soon as ``save`` returns.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def start_run(self, job_name: str, instance_key: str, parameters: Dict[str, Any]) -> RunInfo:
        try:
            return self._start_run(job_name, instance_key, parameters)
        except SQLAlchemyError as e:
            raise CheckpointError(
                "Failed to start job run",
                context={"job_name": job_name, "instance_key": instance_key, "operation": "start_run"},
                original_exception=e
            )

    def _start_run(self, job_name: str, instance_key: str, parameters: Dict[str, Any]) -> RunInfo:
        with self.session_factory() as session:
            last = session.execute(
                select(JobRun)
                .where(JobRun.job_name == job_name, JobRun.instance_key == instance_key)
                .order_by(JobRun.id.desc())
                .limit(1)
            ).scalar_one_or_none()

            resumed = last is not None and last.status in RESUMABLE
            run_number = last.run_number if resumed else (last.run_number + 1 if last else 1)

            if not resumed:
                session.execute(
                    delete(JobCheckpoint).where(
                        JobCheckpoint.job_name == job_name,
                        JobCheckpoint.instance_key == instance_key
                    )
                )

            run = JobRun(
                job_name=job_name,
                instance_key=instance_key,
                run_number=run_number,
                resumed=resumed,
                status=JobStatus.RUNNING,
                started_at=utcnow(),
                parameters=parameters,
            )
            session.add(run)
            session.flush()

            if resumed:
                job_id = session.execute(
                    select(JobRun.id)
                    .where(
                        JobRun.job_name == job_name,
                        JobRun.instance_key == instance_key,
                        JobRun.run_number == run_number
                    )
                    .order_by(JobRun.id)
                    .limit(1)
                ).scalar_one()
            else:
                job_id = run.id

            session.commit()

            logger.info(
                f"Started run {run.id} of {job_name} "
                f"(run number {run_number}{', resumed' if resumed else ''})"
            )
            return RunInfo(run.id, job_name, instance_key, run_number, job_id, resumed)

    def finish_run(self, run_id, status, read_count=0, write_count=0, error_message=None) -> None:
        try:
            with self.session_factory() as session:
                run = session.get(JobRun, run_id)
                if run is None:
                    logger.warning(f"Run {run_id} not found, outcome not recorded")
                    return
                run.status = status
                run.completed_at = utcnow()
                run.duration_seconds = _duration(run.started_at, run.completed_at)
                run.read_count = read_count
                run.write_count = write_count
                run.error_message = error_message
                session.commit()
        except SQLAlchemyError as e:
            raise CheckpointError(
                "Failed to record job run outcome",
                context={"run_id": run_id, "status": status.value, "operation": "finish_run"},
                original_exception=e
            )

    def load(self, key: CheckpointKey) -> Optional[CheckpointState]:
        try:
            with self.session_factory() as session:
                row = self._get(session, key)
                if row is None:
                    return None
                return CheckpointState(
                    status=row.status,
                    read_count=row.read_count,
                    write_count=row.write_count,
                    chunk_count=row.chunk_count,
                    writer_state=dict(row.writer_state or {}),
                    error_message=row.error_message,
                )
        except SQLAlchemyError as e:
            raise CheckpointError(
                "Failed to load checkpoint",
                context={**key.__dict__, "operation": "load"},
                original_exception=e
            )

    def save(self, key: CheckpointKey, state: CheckpointState) -> None:
        try:
            with self.session_factory() as session:
                row = self._get(session, key)
                if row is None:
                    row = JobCheckpoint(
                        job_name=key.job_name,
                        instance_key=key.instance_key,
                        step_name=key.step_name,
                    )
                    session.add(row)
                row.status = state.status
                row.read_count = state.read_count
                row.write_count = state.write_count
                row.chunk_count = state.chunk_count
                row.writer_state = dict(state.writer_state)
                row.error_message = state.error_message
                row.updated_at = utcnow()
                session.commit()
        except SQLAlchemyError as e:
            raise CheckpointError(
                "Failed to save checkpoint",
                context={**key.__dict__, "operation": "save"},
                original_exception=e
            )

    @staticmethod
    def _get(session, key: CheckpointKey) -> Optional[JobCheckpoint]:
        return session.execute(
            select(JobCheckpoint).where(
                JobCheckpoint.job_name == key.job_name,
                JobCheckpoint.instance_key == key.instance_key,
                JobCheckpoint.step_name == key.step_name
            )
        ).scalar_one_or_none()
