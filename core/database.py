"""
Database engine and session management with SQLAlchemy
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from models.base import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """Create a synchronous engine; batch I/O is blocking from the pipeline's view"""
    return create_engine(database_url, echo=echo, future=True, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


def init_db(engine: Engine) -> None:
    """Create all tables defined in models"""
    # Import models so they are registered on the metadata
    import models  # noqa: F401

    logger.info("Creating tables...")
    Base.metadata.create_all(engine)
    logger.info("Tables created successfully.")
