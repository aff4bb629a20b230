from typing import Any, Dict, Generic, List, Optional, TypeVar

from batch.item import ItemWriter

T = TypeVar("T")


class ListItemWriter(ItemWriter[T], Generic[T]):
    """
    Collects written items in memory.

    The snapshot is the number of items kept, so a restart discards
    anything appended after the last commit.
    """

    def __init__(self):
        self.items: List[T] = []
        self.chunks: List[List[T]] = []

    def open(self, state: Optional[Dict[str, Any]] = None) -> None:
        if state and "count" in state:
            del self.items[state["count"]:]
        else:
            self.items.clear()
            self.chunks.clear()

    def write(self, items: List[T]) -> None:
        self.items.extend(items)
        self.chunks.append(list(items))

    def snapshot(self) -> Dict[str, Any]:
        return {"count": len(self.items)}
