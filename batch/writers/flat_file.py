"""
Delimited flat-file writer built on pandas ``to_csv``
"""

import logging
import os
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, Optional, TypeVar, Union

import pandas as pd

from batch.item import ItemWriter
from core.exceptions import WriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FlatFileWriter(ItemWriter[T]):
    """
    Append each chunk to a delimited file.

    Restartable: ``snapshot()`` records the file size after each committed
    chunk, and reopening with that state truncates anything written after
    the last commit before appending again. A fresh open recreates the file
    and writes the optional header line.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        names: List[str],
        encoder: Callable[[T], Dict[str, Any]],
        name: Optional[str] = None,
        delimiter: str = ";",
        header: bool = False,
        encoding: str = "utf-8",
    ):
        self.file_path = Path(file_path)
        self.names = list(names)
        self.encoder = encoder
        self.name = name or self.file_path.stem
        self.delimiter = delimiter
        self.header = header
        self.encoding = encoding
        self._handle: Optional[IO[str]] = None

    def open(self, state: Optional[Dict[str, Any]] = None) -> None:
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            if state and "position" in state:
                position = int(state["position"])
                logger.info(f"Restarting {self.file_path} at byte {position}")
                os.truncate(self.file_path, position)
                self._handle = open(self.file_path, "a", encoding=self.encoding, newline="")
            else:
                logger.info(f"Creating {self.file_path}")
                self._handle = open(self.file_path, "w", encoding=self.encoding, newline="")
                if self.header:
                    self._handle.write(self.delimiter.join(self.names) + "\n")
                    self._handle.flush()
        except OSError as e:
            raise WriteError(
                "Cannot open output file",
                context={"sink": self.name, "file_path": str(self.file_path)},
                original_exception=e
            )

    def write(self, items: List[T]) -> None:
        if not items:
            return

        frame = pd.DataFrame([self.encoder(item) for item in items], columns=self.names)
        try:
            frame.to_csv(
                self._handle,
                sep=self.delimiter,
                header=False,
                index=False,
                lineterminator="\n",
            )
            self._handle.flush()
        except OSError as e:
            raise WriteError(
                "Failed writing chunk",
                context={"sink": self.name, "file_path": str(self.file_path), "items": len(items)},
                original_exception=e
            )

    def snapshot(self) -> Dict[str, Any]:
        return {"position": self.file_path.stat().st_size}

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
