"""
One-item lookahead over a forward-only reader
"""

from typing import Generic, Optional, TypeVar

from batch.item import ItemReader

T = TypeVar("T")

_EMPTY = object()


class PeekableReader(Generic[T]):
    """
    Wraps a reader with a single lookahead slot.

    ``peek()`` fills the slot without consuming it; repeated peeks return
    the same item. ``read()`` drains the slot before pulling from the
    delegate. End of stream is cached in the slot as well so the delegate is
    never read past its end.
    """

    def __init__(self, delegate: ItemReader[T]):
        self.delegate = delegate
        self._next = _EMPTY

    def open(self) -> None:
        self._next = _EMPTY
        self.delegate.open()

    def close(self) -> None:
        self._next = _EMPTY
        self.delegate.close()

    def read(self) -> Optional[T]:
        if self._next is not _EMPTY:
            item, self._next = self._next, _EMPTY
            return item
        return self.delegate.read()

    def peek(self) -> Optional[T]:
        if self._next is _EMPTY:
            self._next = self.delegate.read()
        return self._next
