"""
Writers: sinks receiving one chunk at a time.

Modules:
    flat_file: Delimited file writer (pandas), truncates on restart
    table: ORM merge writer (SQLAlchemy), one transaction per chunk
    staging: batch_staging insert writer and processed-flag writer
    memory: In-memory list writer
"""

from batch.writers.flat_file import FlatFileWriter
from batch.writers.memory import ListItemWriter
from batch.writers.staging import ProcessedStagingWriter, StagingWriter
from batch.writers.table import TableWriter

__all__ = [
    "FlatFileWriter",
    "TableWriter",
    "StagingWriter",
    "ProcessedStagingWriter",
    "ListItemWriter",
]
