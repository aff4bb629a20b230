"""
simple-export-job: transaction table -> flat file
"""

import logging
from pathlib import Path

from pydantic import Field

from batch.job import JobContext, JobDefinition, JobParameters, StepComponents, StepDefinition
from batch.jobs.common import transaction_table_reader
from batch.processors import passthrough
from batch.writers import FlatFileWriter
from schemas.records import TRANSACTION_FIELDS, encode_transaction

logger = logging.getLogger(__name__)

FILENAME_TEMPLATE = "simple-export-{run}.csv"


class ExportParameters(JobParameters):
    output_dir: str = Field(..., alias="output-dir", min_length=1)


def export_file(output_dir: str, run_number: int) -> Path:
    """One file per job instance run, so successive runs never overwrite"""
    return Path(output_dir) / FILENAME_TEMPLATE.format(run=run_number)


def build_export_step(context: JobContext, params: ExportParameters) -> StepComponents:
    path = export_file(params.output_dir, context.run.run_number)
    logger.info(f"fileName={path.absolute()}")

    return StepComponents(
        reader=transaction_table_reader(context),
        processor=passthrough,
        writer=FlatFileWriter(
            path,
            TRANSACTION_FIELDS,
            encode_transaction,
            name="simpleExportWriter",
            header=True,
        ),
    )


simple_export_job = JobDefinition(
    name="simple-export-job",
    parameters=ExportParameters,
    steps=[StepDefinition("simple-export-step", build_export_step)],
    description="Export the transaction table to a delimited file",
)
