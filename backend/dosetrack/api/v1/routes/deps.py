"""Module: deps."""

import uuid
from datetime import datetime
from typing import Generator

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session, sessionmaker

from dosetrack.core.local_dates import local_now
from dosetrack.db.session import SessionLocal


# Session factory shared by request sessions and background progress reads.
def get_session_factory() -> sessionmaker:
    return SessionLocal


# Dependency provider: one DB session per request lifecycle.
def get_db(session_factory: sessionmaker = Depends(get_session_factory)) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


# Local wall-clock "now" used for every dose timestamp and date comparison in a request.
def get_now() -> datetime:
    return local_now()


# Path, query and body ids arrive as strings; a malformed one is a 400, not a lookup miss.
def parse_uuid(value: str, field_name: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field_name} (must be UUID)")
