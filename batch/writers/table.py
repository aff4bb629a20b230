"""
Table writer with idempotent merge semantics
"""

import logging
from typing import Callable, List, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from batch.item import ItemWriter
from core.exceptions import WriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TableWriter(ItemWriter[T]):
    """
    Persist a chunk of records as ORM entities.

    Ensures:
    - One transaction per chunk (all rows or none)
    - No duplicate rows on replay: entities are merged on their primary key
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        entity_mapper: Callable[[T], object],
        name: str = "tableWriter",
    ):
        self.session_factory = session_factory
        self.entity_mapper = entity_mapper
        self.name = name

    def write(self, items: List[T]) -> None:
        if not items:
            return

        try:
            with self.session_factory() as session:
                with session.begin():
                    for item in items:
                        session.merge(self.entity_mapper(item))
        except SQLAlchemyError as e:
            raise WriteError(
                "Failed to persist chunk",
                context={"sink": self.name, "items": len(items)},
                original_exception=e
            )

        logger.debug(f"{self.name}: merged {len(items)} rows")
