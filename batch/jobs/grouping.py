"""
groupingrecord-job: control-break grouping of a transaction file.

Consecutive transactions of the same customer form one group, summed into
a ``customerNumber;balance`` line.
"""

from pydantic import Field

from batch.job import JobContext, JobDefinition, JobParameters, StepComponents, StepDefinition
from batch.jobs.common import transaction_file_reader
from batch.processors import sum_transactions
from batch.readers import ControlBreakReader, SameKeyStrategy
from batch.writers import FlatFileWriter
from schemas.records import TRANSACTION_SUM_FIELDS, encode_transaction_sum


class GroupingParameters(JobParameters):
    transaction_file: str = Field(..., alias="transaction-file", min_length=1)
    output_file: str = Field(..., alias="output-file", min_length=1)


def build_grouping_step(context: JobContext, params: GroupingParameters) -> StepComponents:
    return StepComponents(
        reader=ControlBreakReader(
            transaction_file_reader(context, params.transaction_file),
            SameKeyStrategy(lambda transaction: transaction.customer_number),
        ),
        processor=sum_transactions,
        writer=FlatFileWriter(
            params.output_file,
            TRANSACTION_SUM_FIELDS,
            encode_transaction_sum,
            name="transactionSumWriter",
        ),
    )


grouping_record_job = JobDefinition(
    name="groupingrecord-job",
    parameters=GroupingParameters,
    steps=[StepDefinition("groupingrecord-step", build_grouping_step)],
    description="Sum consecutive transactions per customer",
)
