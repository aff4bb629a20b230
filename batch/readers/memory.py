from typing import Generic, Iterable, Optional, TypeVar

from batch.item import ItemReader

T = TypeVar("T")


class ListItemReader(ItemReader[T], Generic[T]):
    """Reads items from an in-memory sequence; reopening replays it"""

    def __init__(self, items: Iterable[T]):
        self.items = list(items)
        self._position = 0

    def open(self) -> None:
        self._position = 0

    def read(self) -> Optional[T]:
        if self._position >= len(self.items):
            return None
        item = self.items[self._position]
        self._position += 1
        return item
