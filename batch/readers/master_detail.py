"""
Master/detail synchronization of two key-ordered streams.

Both streams must be sorted ascending on the shared key. The reader is not
able to detect unsorted input: groups are then silently wrong.
"""

import logging
from typing import Callable, Generic, List, Optional, TypeVar

from batch.item import ItemReader
from batch.readers.accumulator import KeyedAccumulator
from core.exceptions import MasterDetailError

logger = logging.getLogger(__name__)

M = TypeVar("M")
D = TypeVar("D")


def attach_transactions(master, details: List) -> object:
    """Default merge: store the detail group on the master's ``transactions``"""
    master.transactions = list(details)
    return master


class MasterDetailReader(ItemReader[M], Generic[M, D]):
    """
    Emits one merged master per master group, in master order.

    A single detail group is kept pending between calls because the detail
    stream does not advance in step with the master stream:

    - detail key == master key: the group is attached and consumed
    - detail key <  master key: no later master can match (masters ascend),
      the group is an orphan; it is logged, counted and skipped
    - detail key >  master key: nothing is attached; the group waits for a
      later master

    The merge ends with the master stream. Once the detail stream is
    exhausted every remaining master gets an empty detail list.

    Attributes:
        orphan_groups: Number of detail groups skipped because no master
            carried their key
    """

    def __init__(
        self,
        master: KeyedAccumulator[M, object],
        detail: KeyedAccumulator[D, object],
        merge: Callable[[M, List[D]], M] = attach_transactions,
    ):
        self.master = master
        self.detail = detail
        self.merge = merge
        self.orphan_groups = 0
        self._pending: Optional[List[D]] = None
        self._detail_exhausted = False

    def open(self) -> None:
        self._pending = None
        self._detail_exhausted = False
        self.orphan_groups = 0
        self.master.open()
        try:
            self.detail.open()
        except Exception:
            self.master.close()
            raise

    def close(self) -> None:
        try:
            self.master.close()
        finally:
            self.detail.close()

    def read(self) -> Optional[M]:
        masters = self.master.read()
        if masters is None:
            return None

        key = self.master.key_of(masters)
        if len(masters) > 1:
            raise MasterDetailError(
                "Master group holds more than one record",
                context={"key": key, "group_size": len(masters)}
            )

        return self.merge(masters[0], self._details_for(key))

    def _details_for(self, key) -> List[D]:
        while True:
            if self._pending is None:
                if self._detail_exhausted:
                    return []
                self._pending = self.detail.read()
                if self._pending is None:
                    self._detail_exhausted = True
                    return []

            detail_key = self.detail.key_of(self._pending)

            if detail_key == key:
                details, self._pending = self._pending, None
                return details

            if detail_key < key:
                self.orphan_groups += 1
                logger.warning(
                    f"Skipping {len(self._pending)} detail record(s) with key "
                    f"{detail_key!r}: no master record"
                )
                self._pending = None
                continue

            return []
