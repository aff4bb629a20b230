from sqlalchemy import BigInteger, Boolean, Column, DateTime, Enum, Float, Index, Integer, JSON, String, Text

from models.base import Base, JobStatus, utcnow


class JobRun(Base):
    """
    Tracks metadata for each job execution.

    Purpose:
    - Audit trail of all runs
    - Restart detection (last run of an instance failed -> resume)
    - Run numbering for run-scoped output names
    """
    __tablename__ = "job_runs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    # Job instance identification
    job_name = Column(String(100), nullable=False, index=True)
    instance_key = Column(String(64), nullable=False)
    run_number = Column(Integer, nullable=False, default=1)
    resumed = Column(Boolean, nullable=False, default=False)

    status = Column(Enum(JobStatus), default=JobStatus.RUNNING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    read_count = Column(Integer, default=0)
    write_count = Column(Integer, default=0)

    # Error tracking
    error_message = Column(Text, nullable=True)

    # Parameter snapshot
    parameters = Column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_job_run_instance", "job_name", "instance_key", "started_at"),
    )
