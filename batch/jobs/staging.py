"""
staging-job: flat file -> batch_staging -> transaction table.

The first step stores every record under the run's job id. The second one
reads the rows still flagged unprocessed and, chunk by chunk, writes them to
the transaction table while flagging them processed. A restart of the second
step therefore picks up exactly the rows left over.
"""

from batch.job import JobContext, JobDefinition, StepComponents, StepDefinition
from batch.jobs.common import transaction_file_reader
from batch.jobs.imports import TransactionFileParameters
from batch.readers import StagingReader
from batch.writers import ProcessedStagingWriter, StagingWriter
from schemas.records import deserialize_transaction, serialize_transaction, transaction_entity


def build_load_step(context: JobContext, params: TransactionFileParameters) -> StepComponents:
    return StepComponents(
        reader=transaction_file_reader(context, params.transaction_file),
        writer=StagingWriter(context.session_factory, context.run.job_id, serialize_transaction),
    )


def build_process_step(context: JobContext, params: TransactionFileParameters) -> StepComponents:
    return StepComponents(
        reader=StagingReader(context.session_factory, context.run.job_id, deserialize_transaction),
        writer=ProcessedStagingWriter(context.session_factory, transaction_entity),
    )


staging_job = JobDefinition(
    name="staging-job",
    parameters=TransactionFileParameters,
    steps=[
        StepDefinition("load-staging-step", build_load_step),
        StepDefinition("process-staging-step", build_process_step, save_state=False),
    ],
    description="Stage a transaction file, then move staged rows to the transaction table",
)
