"""
Chunk-oriented pipeline: read -> process -> write, committing a checkpoint
after every chunk.

Pipeline phases:
1. Load the step checkpoint (a COMPLETED step is not run again)
2. Open reader and writer; on restart the writer gets its committed state
3. Replay: re-read and discard the units already committed
4. Chunks: read up to ``chunk_size`` units, process them, write the
   survivors, then save the checkpoint
5. Close writer and reader, record the final status

The checkpoint only advances after a successful write, so a failed run
resumes at the start of the chunk that failed.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from batch.checkpoint import CheckpointKey, CheckpointState, CheckpointStore
from batch.item import ItemReader, ItemWriter
from core.exceptions import (
    BatchException,
    CheckpointError,
    JobCancelledError,
    ProcessingError,
    ReadError,
    WriteError,
)
from models.base import JobStatus

logger = logging.getLogger(__name__)

I = TypeVar("I")
O = TypeVar("O")


@dataclass
class RunResult:
    """
    Outcome of one pipeline run.

    Counts are cumulative over the step instance (they include units
    committed by a failed run this one resumed), except ``filter_count``
    which only covers this run.
    """
    name: str
    status: JobStatus
    cause: Optional[BatchException] = None
    read_count: int = 0
    write_count: int = 0
    filter_count: int = 0
    chunk_count: int = 0
    restarted: bool = False

    @property
    def completed(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def failed(self) -> bool:
        return self.status == JobStatus.FAILED


class ChunkedPipeline(Generic[I, O]):
    """
    Args:
        name: Step name, used in logs and as default checkpoint step name
        reader: Source of units (records, groups or merged records)
        writer: Sink receiving one chunk per write
        processor: Unit transform; returning None filters the unit.
            Defaults to identity.
        chunk_size: Units read per commit
        checkpoint_store: Where progress is saved; without one the run
            cannot be resumed
        checkpoint_key: Key of this step in the store
        save_state: False for readers that cannot replay (they resume from
            whatever remains unprocessed instead of skipping)
        cancel_event: Checked before each chunk; once set, the run stops
            with JobCancelledError
    """

    def __init__(
        self,
        name: str,
        reader: ItemReader[I],
        writer: ItemWriter[O],
        processor: Optional[Callable[[I], Optional[O]]] = None,
        chunk_size: int = 10,
        checkpoint_store: Optional[CheckpointStore] = None,
        checkpoint_key: Optional[CheckpointKey] = None,
        save_state: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self.name = name
        self.reader = reader
        self.writer = writer
        self.processor = processor
        self.chunk_size = chunk_size
        self.checkpoint_store = checkpoint_store
        self.checkpoint_key = checkpoint_key or CheckpointKey(name, "default", name)
        self.save_state = save_state
        self.cancel_event = cancel_event

        self.status = JobStatus.NOT_STARTED
        self._committed = CheckpointState()
        self._filtered = 0
        self._reader_open = False
        self._writer_open = False

    def run(self) -> RunResult:
        """
        Execute the step once.

        Failures never propagate: they end the run FAILED with the cause in
        the result, after the last committed state has been saved.
        """
        if self.status != JobStatus.NOT_STARTED:
            raise RuntimeError(f"Pipeline {self.name} already ran (status={self.status.value})")
        self.status = JobStatus.RUNNING

        try:
            previous = self._load()
        except CheckpointError as e:
            logger.error(f"Cannot load checkpoint for {self.name}: {e.to_dict()}")
            return self._finish(JobStatus.FAILED, e)

        restarted = previous is not None
        if previous is not None:
            if previous.status == JobStatus.COMPLETED:
                logger.info(f"Step {self.name} already completed, skipping")
                self._committed = previous
                return self._finish(JobStatus.COMPLETED, restarted=True)
            self._committed = CheckpointState(
                read_count=previous.read_count,
                write_count=previous.write_count,
                chunk_count=previous.chunk_count,
                writer_state=dict(previous.writer_state),
            )

        replay = self._committed.read_count if self.save_state else 0
        writer_state = self._committed.writer_state or None
        if restarted:
            logger.info(
                f"Restarting {self.name} after {self._committed.chunk_count} committed chunk(s), "
                f"replaying {replay} unit(s)"
            )
        else:
            logger.info(f"Starting {self.name} (chunk size {self.chunk_size})")

        cause: Optional[BatchException] = None
        try:
            self._execute(writer_state, replay)
        except BatchException as e:
            cause = e
        except Exception as e:
            cause = BatchException(
                f"Unexpected failure in {self.name}",
                context={"step": self.name, "chunk": self._committed.chunk_count + 1},
                original_exception=e
            )
        finally:
            close_failure = self._close()

        if cause is None:
            cause = close_failure

        if cause is not None:
            logger.error(f"Step {self.name} failed: {cause.to_dict()}")
            self._save_failure(cause)
            return self._finish(JobStatus.FAILED, cause, restarted)

        try:
            self._save(CheckpointState(
                status=JobStatus.COMPLETED,
                read_count=self._committed.read_count,
                write_count=self._committed.write_count,
                chunk_count=self._committed.chunk_count,
                writer_state=self._committed.writer_state,
            ))
        except CheckpointError as e:
            logger.error(f"Step {self.name} finished but its completion was not saved: {e.to_dict()}")
            return self._finish(JobStatus.FAILED, e, restarted)

        logger.info(
            f"Step {self.name} completed: read={self._committed.read_count}, "
            f"written={self._committed.write_count}, filtered={self._filtered}, "
            f"chunks={self._committed.chunk_count}"
        )
        return self._finish(JobStatus.COMPLETED, restarted=restarted)

    # ------------------------------------------------------------------

    def _execute(self, writer_state: Optional[Dict[str, Any]], replay: int) -> None:
        self.reader.open()
        self._reader_open = True
        self.writer.open(writer_state)
        self._writer_open = True

        self._replay(replay)

        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise JobCancelledError(
                    f"Step {self.name} cancelled",
                    context={"step": self.name, "committed_chunks": self._committed.chunk_count}
                )

            read, outputs, exhausted = self._read_chunk()
            if read == 0:
                return

            if outputs:
                self._write(outputs)

            state = CheckpointState(
                status=JobStatus.RUNNING,
                read_count=self._committed.read_count + read,
                write_count=self._committed.write_count + len(outputs),
                chunk_count=self._committed.chunk_count + 1,
                writer_state=self.writer.snapshot(),
            )
            self._save(state)
            self._committed = state
            logger.debug(
                f"{self.name}: committed chunk {state.chunk_count} "
                f"({read} read, {len(outputs)} written)"
            )

            if exhausted:
                return

    def _replay(self, count: int) -> None:
        for position in range(count):
            if self._read() is None:
                raise ReadError(
                    f"Source of {self.name} ended while replaying committed units",
                    context={"step": self.name, "expected": count, "replayed": position}
                )

    def _read_chunk(self) -> Tuple[int, List[O], bool]:
        outputs: List[O] = []
        read = 0
        while read < self.chunk_size:
            item = self._read()
            if item is None:
                return read, outputs, True
            read += 1

            output = self._process(item)
            if output is None:
                self._filtered += 1
            else:
                outputs.append(output)
        return read, outputs, False

    def _read(self) -> Optional[I]:
        try:
            return self.reader.read()
        except BatchException:
            raise
        except Exception as e:
            raise ReadError(
                f"Failed to read from {self.name}",
                context={"step": self.name, "chunk": self._committed.chunk_count + 1},
                original_exception=e
            )

    def _process(self, item: I) -> Optional[O]:
        if self.processor is None:
            return item
        try:
            return self.processor(item)
        except BatchException:
            raise
        except Exception as e:
            raise ProcessingError(
                f"Failed to process item in {self.name}",
                context={"step": self.name, "chunk": self._committed.chunk_count + 1, "item": repr(item)},
                original_exception=e
            )

    def _write(self, items: List[O]) -> None:
        try:
            self.writer.write(items)
        except BatchException:
            raise
        except Exception as e:
            raise WriteError(
                f"Failed to write chunk in {self.name}",
                context={"step": self.name, "chunk": self._committed.chunk_count + 1, "items": len(items)},
                original_exception=e
            )

    def _close(self) -> Optional[BatchException]:
        failure = None
        for label, component, is_open in (
            ("writer", self.writer, self._writer_open),
            ("reader", self.reader, self._reader_open),
        ):
            if not is_open:
                continue
            try:
                component.close()
            except Exception as e:
                logger.error(f"Failed to close {label} of {self.name}: {e}")
                if failure is None:
                    failure = e if isinstance(e, BatchException) else BatchException(
                        f"Failed to close {label} of {self.name}",
                        context={"step": self.name},
                        original_exception=e
                    )
        self._writer_open = self._reader_open = False
        return failure

    # ------------------------------------------------------------------

    def _load(self) -> Optional[CheckpointState]:
        if self.checkpoint_store is None:
            return None
        return self.checkpoint_store.load(self.checkpoint_key)

    def _save(self, state: CheckpointState) -> None:
        if self.checkpoint_store is not None:
            self.checkpoint_store.save(self.checkpoint_key, state)

    def _save_failure(self, cause: BatchException) -> None:
        state = CheckpointState(
            status=JobStatus.FAILED,
            read_count=self._committed.read_count,
            write_count=self._committed.write_count,
            chunk_count=self._committed.chunk_count,
            writer_state=self._committed.writer_state,
            error_message=str(cause),
        )
        try:
            self._save(state)
        except CheckpointError as e:
            logger.error(f"Could not record failure of {self.name}: {e.to_dict()}")

    def _finish(
        self,
        status: JobStatus,
        cause: Optional[BatchException] = None,
        restarted: bool = False,
    ) -> RunResult:
        self.status = status
        return RunResult(
            name=self.name,
            status=status,
            cause=cause,
            read_count=self._committed.read_count,
            write_count=self._committed.write_count,
            filter_count=self._filtered,
            chunk_count=self._committed.chunk_count,
            restarted=restarted,
        )
