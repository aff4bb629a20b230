"""
Control-break grouping of one ordered stream
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar, Union

from batch.item import ItemReader
from batch.readers.accumulator import ItemAccumulator

T = TypeVar("T")


class BreakKeyStrategy(ABC, Generic[T]):
    """Decides whether ``candidate`` continues the group started by ``current``"""

    @abstractmethod
    def is_same_group(self, current: T, candidate: T) -> bool:
        pass


class SameKeyStrategy(BreakKeyStrategy[T]):
    """Break whenever the extracted key changes"""

    def __init__(self, key: Callable[[T], object]):
        self.key = key

    def is_same_group(self, current: T, candidate: T) -> bool:
        return self.key(current) == self.key(candidate)


class ControlBreakReader(ItemReader[List[T]], Generic[T]):
    """
    Returns lists of consecutive records sharing a break key.

    The break logic is injected, either as a ``BreakKeyStrategy`` or as a
    plain ``(current, candidate) -> bool`` callable, so composite or
    partial-key breaks need no subclassing.
    """

    def __init__(
        self,
        reader: ItemReader[T],
        break_key_strategy: Union[BreakKeyStrategy[T], Callable[[T, T], bool]],
    ):
        if isinstance(break_key_strategy, BreakKeyStrategy):
            predicate = break_key_strategy.is_same_group
        else:
            predicate = break_key_strategy
        self.accumulator = ItemAccumulator(reader, predicate)

    def open(self) -> None:
        self.accumulator.open()

    def close(self) -> None:
        self.accumulator.close()

    def read(self) -> Optional[List[T]]:
        return self.accumulator.read()
