"""
Delimited flat-file reader built on pandas chunked parsing
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

import pandas as pd

from batch.item import ItemReader
from core.exceptions import ParseError, ReadError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BAD_LINE = "\x00bad-line"


class FlatFileReader(ItemReader[T]):
    """
    Read a delimited file record by record.

    Supports:
    - Header lines skipped on read (``lines_to_skip``)
    - Positional field names declared per layout
    - Bounded memory: pandas parses ``buffer_size`` lines at a time
    - Replay: reopening restarts from the first record

    Every field is read as text; typing is the decoder's job. A record with
    the wrong number of fields or a value the decoder rejects raises
    ``ParseError`` carrying the line number and content.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        names: List[str],
        decoder: Callable[[Dict[str, Any]], T],
        name: Optional[str] = None,
        delimiter: str = ";",
        lines_to_skip: int = 1,
        buffer_size: int = 1000,
        encoding: str = "utf-8",
    ):
        self.file_path = Path(file_path)
        self.names = list(names)
        self.decoder = decoder
        self.name = name or self.file_path.stem
        self.delimiter = delimiter
        self.lines_to_skip = lines_to_skip
        self.buffer_size = buffer_size
        self.encoding = encoding

        self._chunks: Iterator[pd.DataFrame] = iter(())
        self._rows: Iterator[Tuple] = iter(())
        self._record_number = 0

    def open(self) -> None:
        logger.info(f"Opening flat file {self.file_path} for {self.name}")
        self._rows = iter(())
        self._record_number = 0
        try:
            self._chunks = pd.read_csv(
                self.file_path,
                sep=self.delimiter,
                header=None,
                skiprows=self.lines_to_skip,
                dtype=str,
                keep_default_na=False,
                engine="python",
                on_bad_lines=self._mark_bad_line,
                chunksize=self.buffer_size,
                encoding=self.encoding,
            )
        except pd.errors.EmptyDataError:
            self._chunks = iter(())
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(
                "Cannot open flat file",
                context={"source": self.name, "file_path": str(self.file_path)},
                original_exception=e
            )

    def read(self) -> Optional[T]:
        while True:
            row = next(self._rows, None)
            if row is not None:
                self._record_number += 1
                return self._decode(row)
            if not self._next_chunk():
                return None

    def close(self) -> None:
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()
        self._chunks = iter(())
        self._rows = iter(())

    def _mark_bad_line(self, fields: List[str]) -> List[str]:
        # Placeholder for an over-long record; _decode raises on it
        return [_BAD_LINE] + [""] * (len(self.names) - 1)

    def _next_chunk(self) -> bool:
        try:
            frame = next(self._chunks)
        except StopIteration:
            return False
        except pd.errors.EmptyDataError:
            return False
        except pd.errors.ParserError as e:
            raise ParseError(
                "Malformed line in flat file",
                context={"source": self.name, "file_path": str(self.file_path)},
                original_exception=e
            )
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(
                "Failed reading flat file",
                context={"source": self.name, "file_path": str(self.file_path)},
                original_exception=e
            )

        if frame.shape[1] != len(self.names):
            raise self._parse_error(
                f"Expected {len(self.names)} fields, found {frame.shape[1]}",
                self._record_number + 1,
            )

        self._rows = frame.itertuples(index=False, name=None)
        return True

    def _decode(self, row: Tuple) -> T:
        if not all(isinstance(value, str) for value in row) or row[0] == _BAD_LINE:
            raise self._parse_error(f"Expected {len(self.names)} fields", self._record_number)

        try:
            return self.decoder(dict(zip(self.names, row)))
        except (ValueError, TypeError, KeyError) as e:
            raise self._parse_error("Cannot decode record", self._record_number, e)

    def _parse_error(self, message: str, record_number: int, cause: Optional[Exception] = None) -> ParseError:
        line_number, line = self._locate(record_number)
        return ParseError(
            message,
            context={
                "source": self.name,
                "file_path": str(self.file_path),
                "line_number": line_number,
                "line": line,
            },
            original_exception=cause
        )

    def _locate(self, record_number: int) -> Tuple[int, str]:
        """
        Physical line number and raw text of the n-th record.

        pandas drops blank lines, so the record count alone lags behind the
        line number; the file is rescanned on the error path only.
        """
        seen = 0
        with open(self.file_path, encoding=self.encoding, newline="") as f:
            for line_number, text in enumerate(f, start=1):
                if line_number <= self.lines_to_skip:
                    continue
                text = text.rstrip("\r\n")
                if not text.strip():
                    continue
                seen += 1
                if seen == record_number:
                    return line_number, text
        return self.lines_to_skip + record_number, ""
