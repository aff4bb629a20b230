"""
Integration tests for the export, import and staging jobs
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from batch.launcher import JobLauncher
from batch.repository import InMemoryJobRepository
from batch.writers.staging import ProcessedStagingWriter
from core.exceptions import JobParametersError
from models.base import StagingStatus
from models.staging import BatchStaging
from models.transaction import Transaction
from tests.conftest import TRANSACTION_HEADER, TRANSACTION_LINES, write_lines


@pytest.fixture
def repository():
    return InMemoryJobRepository()


@pytest.fixture
def launcher(repository, session_factory, settings):
    return JobLauncher(repository, session_factory, settings)


def transaction_rows(session_factory):
    with session_factory() as session:
        return session.execute(
            select(Transaction).order_by(Transaction.customer_number, Transaction.number)
        ).scalars().all()


class TestExportJob:
    """Transaction table -> file named after the run number"""

    def test_export(self, launcher, seeded_tables, tmp_path):
        result = launcher.run("simple-export-job", {"output-dir": str(tmp_path)})

        assert result.completed, result.cause
        lines = (tmp_path / "simple-export-1.csv").read_text().splitlines()
        assert lines == [TRANSACTION_HEADER, *TRANSACTION_LINES]

    def test_each_run_writes_its_own_file(self, launcher, seeded_tables, tmp_path):
        launcher.run("simple-export-job", {"output-dir": str(tmp_path)})
        second = launcher.run("simple-export-job", {"output-dir": str(tmp_path)})

        assert second.run_number == 2
        assert (tmp_path / "simple-export-2.csv").exists()

    def test_empty_table_exports_header_only(self, launcher, session_factory, tmp_path):
        result = launcher.run("simple-export-job", {"output-dir": str(tmp_path)})

        assert result.completed
        assert (tmp_path / "simple-export-1.csv").read_text().splitlines() == [TRANSACTION_HEADER]

    def test_missing_output_dir_parameter(self, launcher, repository):
        with pytest.raises(JobParametersError):
            launcher.run("simple-export-job", {})
        assert repository.runs == []


class TestImportJob:
    """Transaction file -> table"""

    def test_import(self, launcher, session_factory, transaction_file):
        result = launcher.run("simple-import-job", {"transaction-file": str(transaction_file)})

        assert result.completed, result.cause
        rows = transaction_rows(session_factory)
        assert [(r.customer_number, r.number) for r in rows] == [
            ("001", "T001"), ("001", "T002"), ("003", "T003"), ("003", "T004"),
        ]
        assert rows[1].amount == Decimal("5.50")

    def test_reimport_is_idempotent(self, launcher, session_factory, transaction_file):
        launcher.run("simple-import-job", {"transaction-file": str(transaction_file)})
        launcher.run("simple-import-job", {"transaction-file": str(transaction_file)})

        assert len(transaction_rows(session_factory)) == 4

    def test_bad_record_stops_import_at_last_commit(self, launcher, session_factory, tmp_path):
        path = write_lines(tmp_path / "bad.csv", TRANSACTION_HEADER, [
            "001;T001;2024-01-05;1.00",
            "001;T002;2024-01-05;2.00",
            "001;T003;2024-01-05;oops",
        ])

        result = launcher.run("simple-import-job", {"transaction-file": str(path)})

        assert not result.completed
        assert "ParseError" in str(result.cause)
        assert len(transaction_rows(session_factory)) == 2


class TestStagingJob:
    """File -> batch_staging -> transaction table"""

    def test_staging(self, launcher, session_factory, transaction_file):
        result = launcher.run("staging-job", {"transaction-file": str(transaction_file)})

        assert result.completed, result.cause
        assert [step.name for step in result.steps] == ["load-staging-step", "process-staging-step"]
        assert len(transaction_rows(session_factory)) == 4

        with session_factory() as session:
            staged = session.execute(select(BatchStaging)).scalars().all()
        assert len(staged) == 4
        assert {row.processed for row in staged} == {StagingStatus.DONE.value}
        assert {row.job_id for row in staged} == {result.run_id}

    def test_resumed_processing_step_continues_with_unprocessed_rows(
        self, launcher, session_factory, transaction_file, monkeypatch
    ):
        original = ProcessedStagingWriter.write
        calls = {"count": 0}

        def fail_second_chunk(self, items):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("connection reset")
            return original(self, items)

        monkeypatch.setattr(ProcessedStagingWriter, "write", fail_second_chunk)
        first = launcher.run("staging-job", {"transaction-file": str(transaction_file)})
        assert not first.completed

        with session_factory() as session:
            pending = session.execute(
                select(func.count()).select_from(BatchStaging).where(
                    BatchStaging.processed == StagingStatus.NEW.value
                )
            ).scalar()
        assert pending == 2

        monkeypatch.setattr(ProcessedStagingWriter, "write", original)
        second = launcher.run("staging-job", {"transaction-file": str(transaction_file)})

        assert second.completed, second.cause
        assert second.resumed
        assert second.steps[0].restarted
        assert len(transaction_rows(session_factory)) == 4
        with session_factory() as session:
            assert session.execute(select(func.count()).select_from(BatchStaging)).scalar() == 4
