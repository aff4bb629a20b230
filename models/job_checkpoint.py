from sqlalchemy import BigInteger, Column, DateTime, Enum, Index, Integer, JSON, String, Text

from models.base import Base, JobStatus, utcnow


class JobCheckpoint(Base):
    """
    Committed progress of one step of one job instance.

    Purpose:
    - Resume a failed run at the last committed chunk
    - Skip steps that already completed in a resumed instance

    Design:
    - One row per (job_name, instance_key, step_name)
    - read_count drives replay skipping; writer_state lets the sink
      discard output written after the last commit
    """
    __tablename__ = "job_checkpoints"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    job_name = Column(String(100), nullable=False)
    instance_key = Column(String(64), nullable=False)
    step_name = Column(String(100), nullable=False)

    status = Column(Enum(JobStatus), default=JobStatus.RUNNING, nullable=False)

    read_count = Column(Integer, nullable=False, default=0)
    write_count = Column(Integer, nullable=False, default=0)
    chunk_count = Column(Integer, nullable=False, default=0)
    writer_state = Column(JSON, nullable=True)

    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_checkpoint_step", "job_name", "instance_key", "step_name", unique=True),
    )
