"""
Accumulation of consecutive records belonging to the same group.

``ItemAccumulator`` is the shared engine: it reads a first record, then
keeps peeking and consuming while the next record belongs to the same group.
``KeyedAccumulator`` specialises it with strict key equality, which is what
the master/detail reader needs.
"""

from typing import Callable, Generic, Hashable, List, Optional, TypeVar

from batch.item import ItemReader
from batch.readers.peekable import PeekableReader

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class ItemAccumulator(Generic[T]):
    """
    Returns, on each ``read()``, the full run of consecutive records that
    ``is_same_group(first, candidate)`` accepts.

    Single forward pass: once a group is returned its records are gone, and
    the record that ended it stays in the lookahead slot for the next call.
    Records are appended in source order.
    """

    def __init__(
        self,
        reader: ItemReader[T],
        is_same_group: Callable[[T, T], bool],
    ):
        self.source = PeekableReader(reader)
        self.is_same_group = is_same_group

    def open(self) -> None:
        self.source.open()

    def close(self) -> None:
        self.source.close()

    def read(self) -> Optional[List[T]]:
        first = self.source.read()
        if first is None:
            return None

        group = [first]
        while True:
            candidate = self.source.peek()
            if candidate is None or not self.is_same_group(first, candidate):
                return group
            group.append(self.source.read())


class KeyedAccumulator(ItemAccumulator[T], Generic[T, K]):
    """Accumulator grouping records whose ``key`` values are equal"""

    def __init__(self, reader: ItemReader[T], key: Callable[[T], K]):
        super().__init__(reader, lambda current, candidate: key(current) == key(candidate))
        self.key = key

    def key_of(self, group: List[T]) -> K:
        return self.key(group[0])
