"""
Registered batch jobs.

Jobs:
    simple-export-job: Transaction table -> file
    simple-import-job: Transaction file -> table
    staging-job: Transaction file -> staging table -> transaction table
    file2tablesynchro-job: Customer file + transaction table -> balance file
    table2filesynchro-job: Customer table + transaction file -> balance file
    file2filesynchro-job: Customer file + transaction file -> balance file
    sqljoinsynchro-job: SQL join -> balance file
    groupingrecord-job: Transaction file -> per customer sums
"""

from typing import Dict

from batch.job import JobDefinition
from batch.jobs.export import simple_export_job
from batch.jobs.grouping import grouping_record_job
from batch.jobs.imports import simple_import_job
from batch.jobs.staging import staging_job
from batch.jobs.synchro import (
    file2file_synchro_job,
    file2table_synchro_job,
    sqljoin_synchro_job,
    table2file_synchro_job,
)
from core.exceptions import JobNotFoundError

JOB_REGISTRY: Dict[str, JobDefinition] = {
    job.name: job
    for job in (
        simple_export_job,
        simple_import_job,
        staging_job,
        file2table_synchro_job,
        table2file_synchro_job,
        file2file_synchro_job,
        sqljoin_synchro_job,
        grouping_record_job,
    )
}


def get_job(name: str) -> JobDefinition:
    try:
        return JOB_REGISTRY[name]
    except KeyError:
        raise JobNotFoundError(
            f"Unknown job {name!r}",
            context={"job_name": name, "available": sorted(JOB_REGISTRY)}
        )
