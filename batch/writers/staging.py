"""
Writers on both sides of the batch_staging table
"""

import logging
from typing import Callable, List, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from batch.item import ItemWriter
from batch.readers.staging import StagedItem
from core.exceptions import WriteError
from models.base import StagingStatus
from models.staging import BatchStaging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StagingWriter(ItemWriter[T]):
    """Insert serialized records into batch_staging under a job id"""

    def __init__(
        self,
        session_factory: sessionmaker,
        job_id: int,
        serializer: Callable[[T], bytes],
    ):
        self.session_factory = session_factory
        self.job_id = job_id
        self.serializer = serializer

    def write(self, items: List[T]) -> None:
        if not items:
            return

        try:
            with self.session_factory() as session:
                with session.begin():
                    session.add_all([
                        BatchStaging(
                            job_id=self.job_id,
                            value=self.serializer(item),
                            processed=StagingStatus.NEW.value,
                        )
                        for item in items
                    ])
        except SQLAlchemyError as e:
            raise WriteError(
                "Failed to stage chunk",
                context={"sink": "stagingWriter", "job_id": self.job_id, "items": len(items)},
                original_exception=e
            )


class ProcessedStagingWriter(ItemWriter[StagedItem[T]]):
    """
    Write staged values to their target table and flag the staging rows
    processed, in the same transaction.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        entity_mapper: Callable[[T], object],
    ):
        self.session_factory = session_factory
        self.entity_mapper = entity_mapper

    def write(self, items: List[StagedItem[T]]) -> None:
        if not items:
            return

        try:
            with self.session_factory() as session:
                with session.begin():
                    for staged in items:
                        session.merge(self.entity_mapper(staged.item))
                    session.execute(
                        update(BatchStaging)
                        .where(BatchStaging.id.in_([staged.staging_id for staged in items]))
                        .values(processed=StagingStatus.DONE.value)
                    )
        except SQLAlchemyError as e:
            raise WriteError(
                "Failed to process staged chunk",
                context={"sink": "processedStagingWriter", "items": len(items)},
                original_exception=e
            )

        logger.debug(f"Processed {len(items)} staged rows")
