"""
Reader over unprocessed rows of the batch_staging table
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from batch.item import ItemReader
from core.exceptions import ReadError
from models.base import StagingStatus
from models.staging import BatchStaging

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StagedItem(Generic[T]):
    """A deserialized staging value with the id needed to flag it processed"""
    staging_id: int
    item: T


class StagingReader(ItemReader[StagedItem[T]]):
    """
    Read the values staged for one job id that are not yet processed.

    Ids are collected when the reader opens; each value is loaded on read in
    its own short session. Processed rows drop out of the next open, so a
    restarted step naturally continues with what remains (no replay
    skipping for this reader).
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        job_id: int,
        deserializer: Callable[[bytes], T],
    ):
        self.session_factory = session_factory
        self.job_id = job_id
        self.deserializer = deserializer
        self._ids: Iterator[int] = iter(())

    def open(self) -> None:
        try:
            with self.session_factory() as session:
                ids = session.scalars(
                    select(BatchStaging.id).where(
                        BatchStaging.job_id == self.job_id,
                        BatchStaging.processed == StagingStatus.NEW.value
                    ).order_by(BatchStaging.id)
                ).all()
        except SQLAlchemyError as e:
            raise ReadError(
                "Failed to list staged rows",
                context={"source": "stagingReader", "job_id": self.job_id},
                original_exception=e
            )
        logger.info(f"Found {len(ids)} unprocessed staged rows for job {self.job_id}")
        self._ids = iter(ids)

    def read(self) -> Optional[StagedItem[T]]:
        staging_id = next(self._ids, None)
        if staging_id is None:
            return None

        try:
            with self.session_factory() as session:
                row = session.get(BatchStaging, staging_id)
                value = row.value
        except SQLAlchemyError as e:
            raise ReadError(
                "Failed to load staged row",
                context={"source": "stagingReader", "staging_id": staging_id},
                original_exception=e
            )
        return StagedItem(staging_id=staging_id, item=self.deserializer(value))

    def close(self) -> None:
        self._ids = iter(())
