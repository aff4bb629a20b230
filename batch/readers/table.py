"""
Ordered database cursor reader
"""

import logging
from typing import Any, Callable, Mapping, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from batch.item import ItemReader
from core.exceptions import ReadError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TableReader(ItemReader[T]):
    """
    Stream rows of a SELECT through a row mapper.

    The statement must carry its own ORDER BY; master/detail and grouping
    readers rely on it. Rows are fetched ``fetch_size`` at a time and the
    session stays open until ``close()``. Reopening re-executes the query,
    which gives a deterministic replay for restarts.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        statement,
        row_mapper: Callable[[Mapping[str, Any]], T],
        name: str = "tableReader",
        fetch_size: int = 100,
    ):
        self.session_factory = session_factory
        self.statement = statement
        self.row_mapper = row_mapper
        self.name = name
        self.fetch_size = fetch_size

        self._session: Optional[Session] = None
        self._result = None

    def open(self) -> None:
        logger.info(f"Opening cursor for {self.name}")
        self._session = self.session_factory()
        try:
            self._result = self._session.execute(
                self.statement.execution_options(yield_per=self.fetch_size)
            ).mappings()
        except SQLAlchemyError as e:
            self._session.close()
            self._session = None
            raise ReadError(
                "Failed to execute reader query",
                context={"source": self.name},
                original_exception=e
            )

    def read(self) -> Optional[T]:
        try:
            row = self._result.fetchone()
        except SQLAlchemyError as e:
            raise ReadError(
                "Failed to fetch row",
                context={"source": self.name},
                original_exception=e
            )
        if row is None:
            return None

        try:
            return self.row_mapper(row)
        except (ValueError, TypeError, KeyError) as e:
            raise ReadError(
                "Cannot map row",
                context={"source": self.name, "row": dict(row)},
                original_exception=e
            )

    def close(self) -> None:
        if self._result is not None:
            self._result.close()
            self._result = None
        if self._session is not None:
            self._session.close()
            self._session = None
