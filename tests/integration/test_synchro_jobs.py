"""
Integration tests for the master/detail synchronization and grouping jobs
"""

from decimal import Decimal

import pytest

from batch.launcher import JobLauncher
from batch.repository import InMemoryJobRepository
from models.base import JobStatus
from tests.conftest import TRANSACTION_HEADER, write_lines

EXPECTED_BALANCE_LINES = [
    "001;Ada;Lovelace;12 Main St;London;LN;10001;15.50",
    "002;Alan;Turing;3 Park Rd;Wilmslow;CH;20002;0.00",
    "003;Grace;Hopper;7 Navy Way;Arlington;VA;30003;2.33",
]


@pytest.fixture
def launcher(session_factory, settings):
    return JobLauncher(InMemoryJobRepository(), session_factory, settings)


def balances(path):
    return {
        line.split(";")[0]: Decimal(line.split(";")[-1])
        for line in path.read_text().splitlines()
    }


class TestSynchroJobs:
    """Customer balances from every combination of sources"""

    def test_file2file(self, launcher, customer_file, transaction_file, tmp_path, expected_balances):
        output = tmp_path / "out" / "balance.csv"

        result = launcher.run("file2filesynchro-job", {
            "customer-file": str(customer_file),
            "transaction-file": str(transaction_file),
            "output-file": str(output),
        })

        assert result.status == JobStatus.COMPLETED
        assert output.read_text().splitlines() == EXPECTED_BALANCE_LINES
        assert balances(output) == expected_balances
        assert result.read_count == 3
        assert result.write_count == 3

    def test_file2table(self, launcher, seeded_tables, customer_file, tmp_path):
        output = tmp_path / "balance.csv"

        result = launcher.run("file2tablesynchro-job", {
            "customer-file": str(customer_file),
            "output-file": str(output),
        })

        assert result.completed, result.cause
        assert output.read_text().splitlines() == EXPECTED_BALANCE_LINES

    def test_table2file(self, launcher, seeded_tables, transaction_file, tmp_path):
        output = tmp_path / "balance.csv"

        result = launcher.run("table2filesynchro-job", {
            "transaction-file": str(transaction_file),
            "output-file": str(output),
        })

        assert result.completed, result.cause
        assert output.read_text().splitlines() == EXPECTED_BALANCE_LINES

    def test_sqljoin(self, launcher, seeded_tables, tmp_path, expected_balances):
        output = tmp_path / "balance.csv"

        result = launcher.run("sqljoinsynchro-job", {"output-file": str(output)})

        assert result.completed, result.cause
        assert balances(output) == expected_balances
        assert output.read_text().splitlines()[0].startswith("001;Ada;Lovelace;")

    def test_orphan_transactions_do_not_block_later_customers(
        self, launcher, customer_file, tmp_path
    ):
        transactions = write_lines(tmp_path / "orphans.csv", TRANSACTION_HEADER, [
            "000;T000;2024-01-01;99.00",
            "001;T001;2024-01-05;1.00",
            "002;T002;2024-01-05;2.00",
            "0025;T003;2024-01-05;50.00",
            "003;T004;2024-01-05;3.00",
            "009;T005;2024-01-05;9.00",
        ])
        output = tmp_path / "balance.csv"

        result = launcher.run("file2filesynchro-job", {
            "customer-file": str(customer_file),
            "transaction-file": str(transactions),
            "output-file": str(output),
        })

        assert result.completed
        assert balances(output) == {"001": Decimal("1.00"), "002": Decimal("2.00"), "003": Decimal("3.00")}

    def test_sub_cent_amounts_round_once_from_file_and_table(self, launcher, customer_file, tmp_path):
        transactions = write_lines(tmp_path / "cents.csv", TRANSACTION_HEADER, [
            "001;T001;2024-01-05;0.004",
            "001;T002;2024-01-06;0.004",
            "001;T003;2024-01-07;0.004",
        ])
        from_files = tmp_path / "file2file.csv"
        from_table = tmp_path / "file2table.csv"

        launcher.run("file2filesynchro-job", {
            "customer-file": str(customer_file),
            "transaction-file": str(transactions),
            "output-file": str(from_files),
        })
        imported = launcher.run("simple-import-job", {"transaction-file": str(transactions)})
        result = launcher.run("file2tablesynchro-job", {
            "customer-file": str(customer_file),
            "output-file": str(from_table),
        })

        assert imported.completed, imported.cause
        assert result.completed, result.cause
        assert balances(from_files)["001"] == Decimal("0.01")
        assert balances(from_table) == balances(from_files)

    def test_duplicate_customer_fails_job(self, launcher, tmp_path, transaction_file):
        customers = write_lines(tmp_path / "dup.csv", "number;firstName;lastName;address;city;state;postCode", [
            "001;A;A;a;a;AA;00001",
            "001;B;B;b;b;BB;00002",
        ])

        result = launcher.run("file2filesynchro-job", {
            "customer-file": str(customers),
            "transaction-file": str(transaction_file),
            "output-file": str(tmp_path / "balance.csv"),
        })

        assert result.status == JobStatus.FAILED
        assert "MasterDetailError" in str(result.cause)


class TestGroupingJob:
    """Control-break sums per customer"""

    def test_grouping(self, launcher, transaction_file, tmp_path):
        output = tmp_path / "sums.csv"

        result = launcher.run("groupingrecord-job", {
            "transaction-file": str(transaction_file),
            "output-file": str(output),
        })

        assert result.completed
        assert output.read_text().splitlines() == ["001;15.50", "003;2.33"]
        assert result.read_count == 2

    def test_grouping_scenario(self, launcher, tmp_path):
        transactions = write_lines(tmp_path / "t.csv", TRANSACTION_HEADER, [
            "C1;T1;2024-01-01;5",
            "C1;T2;2024-01-02;5",
            "C2;T3;2024-01-03;10",
        ])
        output = tmp_path / "sums.csv"

        launcher.run("groupingrecord-job", {"transaction-file": str(transactions), "output-file": str(output)})

        assert output.read_text().splitlines() == ["C1;10.00", "C2;10.00"]

    def test_rounding_half_up(self, launcher, tmp_path):
        transactions = write_lines(tmp_path / "t.csv", TRANSACTION_HEADER, [
            "C1;T1;2024-01-01;1.111",
            "C1;T2;2024-01-02;1.224",
        ])
        output = tmp_path / "sums.csv"

        launcher.run("groupingrecord-job", {"transaction-file": str(transactions), "output-file": str(output)})

        assert output.read_text().splitlines() == ["C1;2.34"]
