"""
Unit tests for job run tracking and checkpoint persistence
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from batch.checkpoint import CheckpointKey, CheckpointState
from batch.repository import InMemoryJobRepository, SqlJobRepository
from core.exceptions import CheckpointError
from models.base import JobStatus
from models.job_run import JobRun

KEY = CheckpointKey("grouping", "abc123", "step-1")


@pytest.fixture(params=["memory", "sql"])
def repository(request, session_factory):
    if request.param == "memory":
        return InMemoryJobRepository()
    return SqlJobRepository(session_factory)


class TestRunLifecycle:
    """Fresh runs, resumed runs and run numbering"""

    def test_first_run(self, repository):
        run = repository.start_run("grouping", "abc123", {"output-file": "out.csv"})

        assert run.run_number == 1
        assert not run.resumed
        assert run.job_id == run.run_id

    def test_failed_run_is_resumed(self, repository):
        first = repository.start_run("grouping", "abc123", {})
        repository.finish_run(first.run_id, JobStatus.FAILED, error_message="boom")

        second = repository.start_run("grouping", "abc123", {})

        assert second.resumed
        assert second.run_number == 1
        assert second.job_id == first.job_id
        assert second.run_id != first.run_id

    def test_completed_run_starts_next_instance_run(self, repository):
        first = repository.start_run("grouping", "abc123", {})
        repository.finish_run(first.run_id, JobStatus.COMPLETED, 3, 3)

        second = repository.start_run("grouping", "abc123", {})

        assert not second.resumed
        assert second.run_number == 2
        assert second.job_id == second.run_id

    def test_instances_are_independent(self, repository):
        first = repository.start_run("grouping", "abc123", {})
        repository.finish_run(first.run_id, JobStatus.FAILED)

        other = repository.start_run("grouping", "other", {})

        assert not other.resumed
        assert other.run_number == 1

    def test_fresh_run_clears_step_checkpoints(self, repository):
        run = repository.start_run("grouping", "abc123", {})
        repository.save(KEY, CheckpointState(status=JobStatus.COMPLETED, read_count=5))
        repository.finish_run(run.run_id, JobStatus.COMPLETED)

        repository.start_run("grouping", "abc123", {})

        assert repository.load(KEY) is None

    def test_resumed_run_keeps_step_checkpoints(self, repository):
        run = repository.start_run("grouping", "abc123", {})
        repository.save(KEY, CheckpointState(status=JobStatus.FAILED, read_count=4, chunk_count=2))
        repository.finish_run(run.run_id, JobStatus.FAILED)

        repository.start_run("grouping", "abc123", {})

        assert repository.load(KEY).read_count == 4


class TestCheckpoints:
    """Checkpoint save/load"""

    def test_missing_checkpoint(self, repository):
        assert repository.load(KEY) is None

    def test_save_and_load(self, repository):
        state = CheckpointState(
            status=JobStatus.RUNNING,
            read_count=10,
            write_count=8,
            chunk_count=5,
            writer_state={"position": 120},
        )
        repository.save(KEY, state)

        loaded = repository.load(KEY)

        assert loaded == state
        assert loaded is not state

    def test_save_overwrites(self, repository):
        repository.save(KEY, CheckpointState(read_count=1, chunk_count=1))
        repository.save(KEY, CheckpointState(status=JobStatus.FAILED, read_count=2, chunk_count=2, error_message="x"))

        loaded = repository.load(KEY)

        assert loaded.read_count == 2
        assert loaded.status == JobStatus.FAILED
        assert loaded.error_message == "x"

    def test_loaded_state_is_a_copy(self, repository):
        repository.save(KEY, CheckpointState(writer_state={"count": 1}))

        repository.load(KEY).writer_state["count"] = 99

        assert repository.load(KEY).writer_state == {"count": 1}


class TestSqlJobRepository:
    """SQL specifics: recorded run rows and error wrapping"""

    def test_finish_run_records_outcome(self, session_factory):
        repository = SqlJobRepository(session_factory)
        run = repository.start_run("export", "key", {"output-dir": "/tmp"})

        repository.finish_run(run.run_id, JobStatus.COMPLETED, read_count=7, write_count=6)

        with session_factory() as session:
            row = session.execute(select(JobRun).where(JobRun.id == run.run_id)).scalar_one()
        assert row.status == JobStatus.COMPLETED
        assert row.read_count == 7
        assert row.write_count == 6
        assert row.duration_seconds >= 0
        assert row.parameters == {"output-dir": "/tmp"}

    def test_database_errors_become_checkpoint_errors(self, session_factory, monkeypatch):
        repository = SqlJobRepository(session_factory)

        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(SqlJobRepository, "_get", staticmethod(broken))

        with pytest.raises(CheckpointError) as exc_info:
            repository.load(KEY)
        assert exc_info.value.context["operation"] == "load"

        with pytest.raises(CheckpointError):
            repository.save(KEY, CheckpointState())
