"""
Custom exceptions for batch pipelines with structured error context.

Each exception carries context information for debugging and for the
error message recorded on the job run.

Exception Hierarchy:
    BatchException (base)
    ├── ReadError
    │   └── ParseError
    ├── ProcessingError
    ├── WriteError
    ├── JobParametersError
    ├── JobNotFoundError
    ├── CheckpointError
    ├── MasterDetailError
    └── JobCancelledError
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class BatchException(Exception):
    """
    Base exception for all batch-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (step, file, line, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Read Errors
# ============================================================================

class ReadError(BatchException):
    """
    Underlying I/O failure while reading a source. Fatal to the run; the
    checkpoint stays at the last successful commit.

    Context should include:
        - source: Name of the reader
        - file_path / statement: What was being read
    """
    pass


class ParseError(ReadError):
    """
    A flat-file record could not be decoded into the expected shape
    (field count, date format, numeric format).

    Context should include:
        - file_path: Path to the file
        - line_number: Line number of the offending record
        - line: The offending line content
    """

    @property
    def line_number(self) -> Optional[int]:
        return self.context.get("line_number")

    @property
    def line(self) -> Optional[str]:
        return self.context.get("line")


# ============================================================================
# Processing / Write Errors
# ============================================================================

class ProcessingError(BatchException):
    """Unhandled failure inside a transform; aborts the enclosing chunk."""
    pass


class WriteError(BatchException):
    """
    Sink rejected or failed to persist a chunk. The chunk is not committed
    and the checkpoint does not advance.
    """
    pass


class MasterDetailError(BatchException):
    """
    A master group contained more than one record for the same key.

    Context should include:
        - key: The master key
        - group_size: Number of master records sharing the key
    """
    pass


# ============================================================================
# Job Errors
# ============================================================================

class JobParametersError(BatchException):
    """
    Required job parameters are missing or invalid. Raised before any I/O.

    Context should include:
        - job_name: Name of the job
        - missing: Names of missing parameters
        - invalid: Names of parameters that failed validation
    """
    pass


class JobNotFoundError(BatchException):
    """No job is registered under the requested name."""
    pass


class CheckpointError(BatchException):
    """
    Checkpoint store failure.

    Context should include:
        - job_name, instance_key, step_name
        - operation: load or save
    """
    pass


class JobCancelledError(BatchException):
    """Cancellation requested; honoured at the next chunk boundary."""
    pass
