"""
Pytest configuration and fixtures
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from core.config import Settings
from core.database import create_session_factory, init_db
from models.base import Base
from models.customer import Customer
from models.transaction import Transaction

CUSTOMER_HEADER = "number;firstName;lastName;address;city;state;postCode"
TRANSACTION_HEADER = "customerNumber;number;transactionDate;amount"

CUSTOMER_LINES = [
    "001;Ada;Lovelace;12 Main St;London;LN;10001",
    "002;Alan;Turing;3 Park Rd;Wilmslow;CH;20002",
    "003;Grace;Hopper;7 Navy Way;Arlington;VA;30003",
]

TRANSACTION_LINES = [
    "001;T001;2024-01-05;10.00",
    "001;T002;2024-01-06;5.50",
    "003;T003;2024-02-01;3.33",
    "003;T004;2024-02-02;-1.00",
]


def write_lines(path: Path, header: str, lines) -> Path:
    path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def test_engine():
    """In-memory SQLite engine shared across threads and sessions"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def db_session(session_factory):
    """Create database session for tests"""
    with session_factory() as session:
        yield session
        session.rollback()


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        CHUNK_SIZE=2,
        FILE_READ_BUFFER=2,
        TABLE_FETCH_SIZE=2,
        _env_file=None,
    )


@pytest.fixture
def customer_file(tmp_path):
    return write_lines(tmp_path / "customer.csv", CUSTOMER_HEADER, CUSTOMER_LINES)


@pytest.fixture
def transaction_file(tmp_path):
    return write_lines(tmp_path / "transaction.csv", TRANSACTION_HEADER, TRANSACTION_LINES)


@pytest.fixture
def expected_balances():
    """Balances of CUSTOMER_LINES against TRANSACTION_LINES"""
    return {"001": Decimal("15.50"), "002": Decimal("0.00"), "003": Decimal("2.33")}


@pytest.fixture
def seeded_tables(session_factory):
    """Customer and transaction tables holding the sample file contents"""
    with session_factory() as session:
        for line in CUSTOMER_LINES:
            number, first, last, address, city, state, post_code = line.split(";")
            session.add(Customer(
                number=number, first_name=first, last_name=last, address=address,
                city=city, state=state, post_code=post_code,
            ))
        for line in TRANSACTION_LINES:
            customer_number, number, day, amount = line.split(";")
            session.add(Transaction(
                customer_number=customer_number, number=number,
                transaction_date=date.fromisoformat(day),
                amount=Decimal(amount),
            ))
        session.commit()
    return session_factory
