"""Database session management."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from fitchallenge.core.config import settings
from fitchallenge.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def connect_args_for(database_url: str, timeout_seconds: float) -> dict[str, Any]:
    """Driver arguments that bound every store call by `timeout_seconds`."""
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if backend == "postgresql":
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return {}


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=echo,
        connect_args=connect_args_for(database_url, settings.store_timeout_seconds),
    )


engine = build_engine(settings.database_url, echo=settings.debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for FastAPI to get DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def with_read_retry(
    db: Session,
    read: Callable[[], T],
    *,
    attempts: int | None = None,
    backoff: float | None = None,
) -> T:
    """Run an idempotent read, retrying transient store failures with backoff.

    The session is rolled back between attempts. Raises StoreUnavailable once
    the attempts are exhausted. Never wrap writes.
    """
    attempts = attempts or settings.read_retry_attempts
    backoff = settings.read_retry_backoff_seconds if backoff is None else backoff
    last_error: OperationalError | None = None

    for attempt in range(1, attempts + 1):
        try:
            return read()
        except OperationalError as exc:
            last_error = exc
            db.rollback()
            logger.warning("store read failed (attempt %s/%s): %s", attempt, attempts, exc)
            if attempt < attempts:
                time.sleep(backoff * (2 ** (attempt - 1)))

    raise StoreUnavailable() from last_error
