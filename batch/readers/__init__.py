"""
Readers: sources of records and the grouping/merging readers built on them.

Modules:
    peekable: One-item lookahead wrapper
    accumulator: Group engine (ItemAccumulator) and KeyedAccumulator
    master_detail: MasterDetailReader merging two key-ordered streams
    grouping: ControlBreakReader and break key strategies
    flat_file: Delimited file reader (pandas)
    table: Ordered SQL cursor reader (SQLAlchemy)
    staging: Reader over unprocessed batch_staging rows
    memory: In-memory list reader
"""

from batch.readers.accumulator import ItemAccumulator, KeyedAccumulator
from batch.readers.flat_file import FlatFileReader
from batch.readers.grouping import BreakKeyStrategy, ControlBreakReader, SameKeyStrategy
from batch.readers.master_detail import MasterDetailReader, attach_transactions
from batch.readers.memory import ListItemReader
from batch.readers.peekable import PeekableReader
from batch.readers.staging import StagedItem, StagingReader
from batch.readers.table import TableReader

__all__ = [
    "PeekableReader",
    "ItemAccumulator",
    "KeyedAccumulator",
    "MasterDetailReader",
    "attach_transactions",
    "BreakKeyStrategy",
    "SameKeyStrategy",
    "ControlBreakReader",
    "FlatFileReader",
    "TableReader",
    "StagedItem",
    "StagingReader",
    "ListItemReader",
]
