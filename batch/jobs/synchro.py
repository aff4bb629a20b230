"""
Master/detail synchronization jobs.

Each job merges a customer stream (master) with a transaction stream
(detail), both ordered by customer number, computes every customer's
balance and writes one line per customer. The jobs only differ in where the
two streams come from; ``sqljoinsynchro-job`` delegates the merge to the
database instead.
"""

from pydantic import Field
from sqlalchemy import func, select

from batch.job import JobContext, JobDefinition, JobParameters, StepComponents, StepDefinition
from batch.jobs.common import (
    balance_file_writer,
    customer_accumulator,
    customer_file_reader,
    customer_table_reader,
    transaction_accumulator,
    transaction_file_reader,
    transaction_table_reader,
)
from batch.processors import compute_balance, round_balance
from batch.readers import MasterDetailReader, TableReader
from models.customer import Customer
from models.transaction import Transaction
from schemas.records import customer_balance_from_row


class OutputFileParameters(JobParameters):
    output_file: str = Field(..., alias="output-file", min_length=1)


class File2TableParameters(OutputFileParameters):
    customer_file: str = Field(..., alias="customer-file", min_length=1)


class Table2FileParameters(OutputFileParameters):
    transaction_file: str = Field(..., alias="transaction-file", min_length=1)


class File2FileParameters(OutputFileParameters):
    customer_file: str = Field(..., alias="customer-file", min_length=1)
    transaction_file: str = Field(..., alias="transaction-file", min_length=1)


def _synchro_step(master, detail, output_file) -> StepComponents:
    return StepComponents(
        reader=MasterDetailReader(customer_accumulator(master), transaction_accumulator(detail)),
        processor=compute_balance,
        writer=balance_file_writer(output_file),
    )


def build_file2table_step(context: JobContext, params: File2TableParameters) -> StepComponents:
    return _synchro_step(
        customer_file_reader(context, params.customer_file),
        transaction_table_reader(context),
        params.output_file,
    )


def build_table2file_step(context: JobContext, params: Table2FileParameters) -> StepComponents:
    return _synchro_step(
        customer_table_reader(context),
        transaction_file_reader(context, params.transaction_file),
        params.output_file,
    )


def build_file2file_step(context: JobContext, params: File2FileParameters) -> StepComponents:
    return _synchro_step(
        customer_file_reader(context, params.customer_file),
        transaction_file_reader(context, params.transaction_file),
        params.output_file,
    )


def customer_balance_statement():
    """Customers outer-joined with their transactions, amounts summed per customer"""
    customer = Customer.__table__
    transaction = Transaction.__table__
    return (
        select(customer, func.coalesce(func.sum(transaction.c.amount), 0).label("balance"))
        .select_from(
            customer.outerjoin(transaction, transaction.c.customer_number == customer.c.number)
        )
        .group_by(*customer.c)
        .order_by(customer.c.number)
    )


def build_sqljoin_step(context: JobContext, params: OutputFileParameters) -> StepComponents:
    return StepComponents(
        reader=TableReader(
            context.session_factory,
            customer_balance_statement(),
            customer_balance_from_row,
            name="customerBalanceReader",
            fetch_size=context.settings.TABLE_FETCH_SIZE,
        ),
        processor=round_balance,
        writer=balance_file_writer(params.output_file),
    )


file2table_synchro_job = JobDefinition(
    name="file2tablesynchro-job",
    parameters=File2TableParameters,
    steps=[StepDefinition("file2tablesynchro-step", build_file2table_step)],
    description="Customer file + transaction table -> customer balance file",
)

table2file_synchro_job = JobDefinition(
    name="table2filesynchro-job",
    parameters=Table2FileParameters,
    steps=[StepDefinition("table2filesynchro-step", build_table2file_step)],
    description="Customer table + transaction file -> customer balance file",
)

file2file_synchro_job = JobDefinition(
    name="file2filesynchro-job",
    parameters=File2FileParameters,
    steps=[StepDefinition("file2filesynchro-step", build_file2file_step)],
    description="Customer file + transaction file -> customer balance file",
)

sqljoin_synchro_job = JobDefinition(
    name="sqljoinsynchro-job",
    parameters=OutputFileParameters,
    steps=[StepDefinition("sqljoinsynchro-step", build_sqljoin_step)],
    description="SQL outer join of customer and transaction tables -> customer balance file",
)
