"""
simple-import-job: flat file -> transaction table
"""

from pydantic import Field

from batch.job import JobContext, JobDefinition, JobParameters, StepComponents, StepDefinition
from batch.jobs.common import transaction_file_reader
from batch.writers import TableWriter
from schemas.records import transaction_entity


class TransactionFileParameters(JobParameters):
    transaction_file: str = Field(..., alias="transaction-file", min_length=1)


def build_import_step(context: JobContext, params: TransactionFileParameters) -> StepComponents:
    return StepComponents(
        reader=transaction_file_reader(context, params.transaction_file),
        writer=TableWriter(context.session_factory, transaction_entity, name="transactionTableWriter"),
    )


simple_import_job = JobDefinition(
    name="simple-import-job",
    parameters=TransactionFileParameters,
    steps=[StepDefinition("simple-import-step", build_import_step)],
    description="Load a transaction file into the transaction table",
)
