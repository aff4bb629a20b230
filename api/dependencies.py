"""
FastAPI dependencies
"""

from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Iterator[Session]:
    """One session per request, from the factory stored on the app"""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
