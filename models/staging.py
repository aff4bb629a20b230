from sqlalchemy import BigInteger, Column, Index, Integer, LargeBinary, String

from models.base import Base, StagingStatus


class BatchStaging(Base):
    """
    Staging table for the deferred-processing pattern.

    Purpose:
    - A first step stores serialized records under the job id
    - A second step reads unprocessed rows and flags them processed
      in the same transaction as the business write
    """
    __tablename__ = "batch_staging"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    job_id = Column(BigInteger, nullable=False)
    value = Column(LargeBinary, nullable=False)
    processed = Column(String(1), nullable=False, default=StagingStatus.NEW.value)

    __table_args__ = (
        Index("idx_staging_job_processed", "job_id", "processed"),
    )
