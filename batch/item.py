"""
Reader and writer contracts shared by every pipeline component.

A reader returns one item per ``read()`` call and ``None`` once the
stream is exhausted (end of stream is not an error). A writer receives a
whole chunk per ``write()`` call and can describe, through ``snapshot()``,
the state needed to reopen it at the last committed chunk.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class ItemReader(ABC, Generic[T]):
    """Forward-only source of items"""

    def open(self) -> None:
        """Acquire resources; called once before the first read"""

    @abstractmethod
    def read(self) -> Optional[T]:
        """Return the next item, or None at end of stream"""

    def close(self) -> None:
        """Release resources; called once at run end"""

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.read()
            if item is None:
                return
            yield item


class ItemWriter(ABC, Generic[T]):
    """Sink receiving one chunk at a time"""

    def open(self, state: Optional[Dict[str, Any]] = None) -> None:
        """
        Acquire resources.

        Args:
            state: Snapshot saved with the last committed checkpoint when the
                step is restarted, None on a fresh start
        """

    @abstractmethod
    def write(self, items: List[T]) -> None:
        """Persist a chunk; raise to reject it"""

    def snapshot(self) -> Dict[str, Any]:
        """State to store with the checkpoint after a successful write"""
        return {}

    def close(self) -> None:
        """Release resources; called once at run end"""
