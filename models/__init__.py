"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (JobStatus, StagingStatus)
    customer: Customer master table
    transaction: Transaction detail table (one-to-many with customer, no FK)
    staging: batch_staging table for deferred processing
    job_run: Job execution tracking
    job_checkpoint: Per-step checkpoints for resume-on-failure

Usage:
    from models import Customer, Transaction, JobRun, JobCheckpoint
    from models.base import JobStatus

Relationships:
    - Customer -> Transaction through customer_number (not enforced)
    - JobRun -> JobCheckpoint through (job_name, instance_key)
"""

from models.base import Base, JobStatus, StagingStatus
from models.customer import Customer
from models.job_checkpoint import JobCheckpoint
from models.job_run import JobRun
from models.staging import BatchStaging
from models.transaction import Transaction

__all__ = [
    "Base",
    "JobStatus",
    "StagingStatus",
    "Customer",
    "Transaction",
    "BatchStaging",
    "JobRun",
    "JobCheckpoint",
]
