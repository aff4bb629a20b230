"""
Reader and writer factories shared by the job definitions
"""

from pathlib import Path
from typing import Union

from sqlalchemy import select

from batch.job import JobContext
from batch.readers import FlatFileReader, KeyedAccumulator, TableReader
from batch.writers import FlatFileWriter
from models.customer import Customer
from models.transaction import Transaction
from schemas.records import (
    CUSTOMER_BALANCE_FIELDS,
    CUSTOMER_FIELDS,
    TRANSACTION_FIELDS,
    customer_from_row,
    decode_customer,
    decode_transaction,
    encode_customer_balance,
    transaction_from_row,
)

PathLike = Union[str, Path]


def customer_file_reader(context: JobContext, path: PathLike) -> FlatFileReader:
    return FlatFileReader(
        path,
        CUSTOMER_FIELDS,
        decode_customer,
        name="customerFileReader",
        buffer_size=context.settings.FILE_READ_BUFFER,
    )


def transaction_file_reader(context: JobContext, path: PathLike) -> FlatFileReader:
    return FlatFileReader(
        path,
        TRANSACTION_FIELDS,
        decode_transaction,
        name="transactionFileReader",
        buffer_size=context.settings.FILE_READ_BUFFER,
    )


def customer_table_reader(context: JobContext) -> TableReader:
    customer = Customer.__table__
    return TableReader(
        context.session_factory,
        select(customer).order_by(customer.c.number),
        customer_from_row,
        name="customerTableReader",
        fetch_size=context.settings.TABLE_FETCH_SIZE,
    )


def transaction_table_reader(context: JobContext) -> TableReader:
    transaction = Transaction.__table__
    return TableReader(
        context.session_factory,
        select(transaction).order_by(transaction.c.customer_number, transaction.c.number),
        transaction_from_row,
        name="transactionTableReader",
        fetch_size=context.settings.TABLE_FETCH_SIZE,
    )


def customer_accumulator(reader) -> KeyedAccumulator:
    return KeyedAccumulator(reader, key=lambda customer: customer.number)


def transaction_accumulator(reader) -> KeyedAccumulator:
    return KeyedAccumulator(reader, key=lambda transaction: transaction.customer_number)


def balance_file_writer(path: PathLike) -> FlatFileWriter:
    return FlatFileWriter(
        path,
        CUSTOMER_BALANCE_FIELDS,
        encode_customer_balance,
        name="customerBalanceWriter",
    )
