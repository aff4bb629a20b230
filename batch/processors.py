"""
Item processors (the transform stage of a pipeline).

A processor receives one unit and returns the unit to write, or ``None``
to filter it out. Any exception aborts the chunk.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, TypeVar

from schemas.records import CustomerRecord, TransactionRecord, TransactionSum

logger = logging.getLogger(__name__)

T = TypeVar("T")

TWO_PLACES = Decimal("0.01")


def round_half_up(value) -> Decimal:
    """Round to 2 decimal places, halves away from zero"""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def passthrough(item: T) -> T:
    logger.debug(f"Processing {item!r}")
    return item


def compute_balance(customer: CustomerRecord) -> CustomerRecord:
    """Sum the customer's transactions into its balance"""
    total = sum((transaction.amount for transaction in customer.transactions), Decimal("0"))
    customer.balance = round_half_up(total)
    logger.debug(f"Customer {customer.number}: {len(customer.transactions)} transaction(s), balance={customer.balance}")
    return customer


def round_balance(customer: CustomerRecord) -> CustomerRecord:
    """Normalize a balance computed upstream (e.g. by SQL aggregation)"""
    customer.balance = round_half_up(customer.balance if customer.balance is not None else 0)
    logger.debug(f"Customer {customer.number}: balance={customer.balance}")
    return customer


def sum_transactions(transactions: List[TransactionRecord]) -> TransactionSum:
    """Collapse one control-break group of transactions into its total"""
    total = sum((transaction.amount for transaction in transactions), Decimal("0"))
    transaction_sum = TransactionSum(
        customer_number=transactions[0].customer_number,
        balance=round_half_up(total),
    )
    logger.debug(f"{transaction_sum!r}")
    return transaction_sum
