"""
Integration tests for the launcher against the SQL job repository:
failure, resume from the last committed chunk, cancellation
"""

import threading

import pytest
from sqlalchemy import select

from batch.launcher import JobLauncher
from batch.repository import SqlJobRepository
from core.exceptions import JobCancelledError, JobParametersError
from models.base import JobStatus
from models.job_checkpoint import JobCheckpoint
from models.job_run import JobRun
from tests.conftest import CUSTOMER_HEADER, TRANSACTION_HEADER, write_lines

CUSTOMERS = [f"00{i};First{i};Last{i};{i} Road;Town;ST;1000{i}" for i in range(1, 8)]

TRANSACTIONS = [
    "001;T01;2024-01-01;1.00",
    "002;T02;2024-01-01;2.00",
    "003;T03;2024-01-01;3.00",
    "004;T04;2024-01-01;4.00",
    "004;T05;2024-01-01;4.50",
    "006;T06;2024-01-01;6.00",
    "007;T07;2024-01-01;7.00",
]


@pytest.fixture
def repository(session_factory):
    return SqlJobRepository(session_factory)


@pytest.fixture
def inputs(tmp_path):
    return {
        "customer-file": str(write_lines(tmp_path / "customers.csv", CUSTOMER_HEADER, CUSTOMERS)),
        "transaction-file": str(write_lines(tmp_path / "transactions.csv", TRANSACTION_HEADER, TRANSACTIONS)),
        "output-file": str(tmp_path / "out" / "balance.csv"),
    }


def runs(session_factory):
    with session_factory() as session:
        return session.execute(select(JobRun).order_by(JobRun.id)).scalars().all()


class TestLauncherRestart:
    """A failed job resumes where it stopped, without duplicate output"""

    def test_uninterrupted_run(self, repository, session_factory, settings, inputs):
        result = JobLauncher(repository, session_factory, settings).run("file2filesynchro-job", inputs)

        assert result.completed
        recorded = runs(session_factory)
        assert len(recorded) == 1
        assert recorded[0].status == JobStatus.COMPLETED
        assert recorded[0].read_count == 7
        assert recorded[0].write_count == 7

    def test_resume_after_bad_record(self, repository, session_factory, settings, inputs, tmp_path):
        reference = tmp_path / "reference.csv"
        JobLauncher(repository, session_factory, settings).run(
            "file2filesynchro-job", {**inputs, "output-file": str(reference)}
        )

        broken = list(TRANSACTIONS)
        broken[5] = "006;T06;2024-01-01;six"
        write_lines(tmp_path / "transactions.csv", TRANSACTION_HEADER, broken)

        first = JobLauncher(repository, session_factory, settings).run("file2filesynchro-job", inputs)

        assert first.status == JobStatus.FAILED
        assert "ParseError" in str(first.cause)
        output = tmp_path / "out" / "balance.csv"
        committed_lines = output.read_text().splitlines()
        assert 0 < len(committed_lines) < 7

        write_lines(tmp_path / "transactions.csv", TRANSACTION_HEADER, TRANSACTIONS)
        second = JobLauncher(repository, session_factory, settings).run("file2filesynchro-job", inputs)

        assert second.completed, second.cause
        assert second.resumed
        assert second.run_number == first.run_number
        assert output.read_text() == reference.read_text()
        assert output.read_text().splitlines()[:len(committed_lines)] == committed_lines

        recorded = [run for run in runs(session_factory) if run.instance_key == first.instance_key]
        assert [run.status for run in recorded] == [JobStatus.FAILED, JobStatus.COMPLETED]
        assert recorded[0].error_message is not None

    def test_checkpoint_recorded_per_step(self, repository, session_factory, settings, inputs):
        result = JobLauncher(repository, session_factory, settings).run("file2filesynchro-job", inputs)

        with session_factory() as session:
            checkpoint = session.execute(
                select(JobCheckpoint).where(JobCheckpoint.instance_key == result.instance_key)
            ).scalar_one()
        assert checkpoint.step_name == "file2filesynchro-step"
        assert checkpoint.status == JobStatus.COMPLETED
        assert checkpoint.chunk_count == 4
        assert checkpoint.writer_state["position"] > 0

    def test_cancelled_job_resumes(self, repository, session_factory, settings, inputs):
        event = threading.Event()
        event.set()

        cancelled = JobLauncher(repository, session_factory, settings, cancel_event=event).run(
            "file2filesynchro-job", inputs
        )

        assert cancelled.status == JobStatus.FAILED
        assert isinstance(cancelled.cause, JobCancelledError)

        resumed = JobLauncher(repository, session_factory, settings).run("file2filesynchro-job", inputs)

        assert resumed.completed
        assert resumed.resumed

    def test_parameter_errors_start_no_run(self, repository, session_factory, settings):
        with pytest.raises(JobParametersError):
            JobLauncher(repository, session_factory, settings).run("file2filesynchro-job", {})

        assert runs(session_factory) == []

    def test_chunk_size_parameter(self, repository, session_factory, settings, inputs):
        result = JobLauncher(repository, session_factory, settings).run(
            "file2filesynchro-job", {**inputs, "chunk-size": "5"}
        )

        assert result.steps[0].chunk_count == 2
