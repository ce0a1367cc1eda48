# pyright: reportMissingTypeStubs=false
"""
Database configuration and session management.

This module sets up SQLAlchemy database connection, session management,
and provides dependency injection for database sessions in FastAPI routes.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator

from fastapi import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config import DATABASE_URL
from core.constants import DB_POOL_RECYCLE_SECONDS

logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Engine keyword arguments for a database URL.

    SQLite connections are shared with the threadpool that runs sync
    FastAPI endpoints, so the same-thread check is disabled for them.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": DB_POOL_RECYCLE_SECONDS,
    }


# Create SQLAlchemy engine
engine = create_engine(
    DATABASE_URL,
    echo=False,
    future=True,
    **engine_options(DATABASE_URL),
)

# Create configured SessionLocal class
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Don't expire objects after commit
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    """Set created_at and updated_at on insert using the pharmacy's local time."""
    # Import here to avoid circular import
    from utils.datetime_utils import local_now
    now = local_now()
    for column_name in ("created_at", "updated_at"):
        if hasattr(mapper, "columns") and column_name in mapper.columns:  # type: ignore
            if getattr(target, column_name, None) is None:
                setattr(target, column_name, now)


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    """Set updated_at on update using the pharmacy's local time."""
    from utils.datetime_utils import local_now
    if hasattr(mapper, "columns") and "updated_at" in mapper.columns:  # type: ignore
        setattr(target, "updated_at", local_now())


def _close_session(db: Session, error: Exception) -> None:
    """Roll back after a failed request or script; business errors are not logged."""
    db.rollback()
    if isinstance(error, HTTPException):
        return
    if isinstance(error, SQLAlchemyError):
        logger.exception(f"Database error: {error}")
    else:
        logger.exception(f"Unexpected error in database session: {error}")


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own writes; anything left uncommitted when the
    request fails is rolled back, and the session is always closed.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        _close_session(db, e)
        raise
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session scope for code running outside a request (startup checks, scripts).

    Commits on a clean exit.

    Example:
        ```python
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
        ```
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        _close_session(db, e)
        raise
    finally:
        db.close()
