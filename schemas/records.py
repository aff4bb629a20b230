"""
Pydantic record shapes and their flat-file field mappings.

Records are decoded by explicit field-by-name functions: each flat-file
layout declares its positional names, and one decode/encode function per
shape maps those names to model fields.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from models.transaction import Transaction

# ============================================================================
# Flat-file layouts (";" delimited, header line skipped on read)
# ============================================================================

CUSTOMER_FIELDS = ["number", "firstName", "lastName", "address", "city", "state", "postCode"]
TRANSACTION_FIELDS = ["customerNumber", "number", "transactionDate", "amount"]
CUSTOMER_BALANCE_FIELDS = CUSTOMER_FIELDS + ["balance"]
TRANSACTION_SUM_FIELDS = ["customerNumber", "balance"]


class TransactionRecord(BaseModel):
    """One detail record, keyed by customer number"""

    customer_number: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    transaction_date: Optional[date] = None
    amount: Decimal

    class Config:
        frozen = True


class CustomerRecord(BaseModel):
    """
    Master record keyed by customer number.

    ``transactions`` is filled by the master/detail reader and ``balance``
    by the balance processor; both are empty/unset right after decoding.
    """

    number: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    post_code: Optional[str] = None

    transactions: List[TransactionRecord] = Field(default_factory=list)
    balance: Optional[Decimal] = None

    @field_validator("first_name", "last_name", "address", "city", "state", "post_code", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class TransactionSum(BaseModel):
    """Aggregate produced by the grouping job"""

    customer_number: str
    balance: Decimal


# ============================================================================
# Decoders / encoders
# ============================================================================

def decode_customer(fields: Mapping[str, Any]) -> CustomerRecord:
    return CustomerRecord(
        number=fields["number"],
        first_name=fields["firstName"],
        last_name=fields["lastName"],
        address=fields["address"],
        city=fields["city"],
        state=fields["state"],
        post_code=fields["postCode"],
    )


def decode_transaction(fields: Mapping[str, Any]) -> TransactionRecord:
    return TransactionRecord(
        customer_number=fields["customerNumber"],
        number=fields["number"],
        transaction_date=fields["transactionDate"],
        amount=fields["amount"],
    )


def encode_customer_balance(customer: CustomerRecord) -> Dict[str, Any]:
    return {
        "number": customer.number,
        "firstName": customer.first_name,
        "lastName": customer.last_name,
        "address": customer.address,
        "city": customer.city,
        "state": customer.state,
        "postCode": customer.post_code,
        "balance": customer.balance,
    }


def encode_transaction(transaction: TransactionRecord) -> Dict[str, Any]:
    return {
        "customerNumber": transaction.customer_number,
        "number": transaction.number,
        "transactionDate": transaction.transaction_date,
        "amount": transaction.amount,
    }


def encode_transaction_sum(item: TransactionSum) -> Dict[str, Any]:
    return {
        "customerNumber": item.customer_number,
        "balance": item.balance,
    }


# ============================================================================
# Row mappers (table rows -> records)
# ============================================================================

def customer_from_row(row: Mapping[str, Any]) -> CustomerRecord:
    return CustomerRecord(
        number=row["number"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        address=row["address"],
        city=row["city"],
        state=row["state"],
        post_code=row["post_code"],
    )


def table_amount(value) -> Decimal:
    """
    Amount read from an unscaled numeric column.

    Drivers without native decimals pad the value to a fixed number of
    places; trailing zeros past the second decimal are dropped, significant
    digits are kept.
    """
    if value is None:
        return Decimal("0.00")
    amount = Decimal(value)
    cents = amount.quantize(Decimal("0.01"))
    return cents if cents == amount else amount.normalize()


def transaction_from_row(row: Mapping[str, Any]) -> TransactionRecord:
    return TransactionRecord(
        customer_number=row["customer_number"],
        number=row["number"],
        transaction_date=row["transaction_date"],
        amount=table_amount(row["amount"]),
    )


def customer_balance_from_row(row: Mapping[str, Any]) -> CustomerRecord:
    """Customer row joined with its summed amounts (column ``balance``)"""
    customer = customer_from_row(row)
    customer.balance = row["balance"] if row["balance"] is not None else Decimal("0")
    return customer


# ============================================================================
# Persistence (records -> ORM entities, staging values)
# ============================================================================

def transaction_entity(transaction: TransactionRecord):
    return Transaction(
        customer_number=transaction.customer_number,
        number=transaction.number,
        amount=transaction.amount,
        transaction_date=transaction.transaction_date,
    )


def serialize_transaction(transaction: TransactionRecord) -> bytes:
    return transaction.model_dump_json().encode("utf-8")


def deserialize_transaction(value: bytes) -> TransactionRecord:
    return TransactionRecord.model_validate_json(value)
