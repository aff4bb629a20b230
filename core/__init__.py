"""
Core utilities and configuration for the batch pipelines.

This package provides foundational components used throughout the pipelines:

Modules:
    config: Application configuration and environment variable management
    database: Engine and session factory helpers, table creation
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import get_settings
    from core.database import create_db_engine, create_session_factory
    from core.exceptions import ParseError, WriteError
    from core.logging import setup_logging

Example:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = create_db_engine(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)
    with session_factory() as session:
        ...
"""

from core.config import Settings, get_settings
from core.exceptions import (
    BatchException,
    CheckpointError,
    JobCancelledError,
    JobNotFoundError,
    JobParametersError,
    MasterDetailError,
    ParseError,
    ProcessingError,
    ReadError,
    WriteError,
)

__all__ = [
    "Settings",
    "get_settings",
    # Exceptions
    "BatchException",
    "ReadError",
    "ParseError",
    "ProcessingError",
    "WriteError",
    "MasterDetailError",
    "JobParametersError",
    "JobNotFoundError",
    "CheckpointError",
    "JobCancelledError",
]
