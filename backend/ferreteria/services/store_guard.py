# Overview: Translates store (SQLAlchemy) failures into the application's error taxonomy.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)

from ..extensions import db


class StoreError(Exception):
    """Base class for failures reported by the persistent store."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ConnectivityError(StoreError):
    """Store unreachable or timed out. Reported ahead of every other error."""
    status_code = 503


class QueryError(StoreError):
    """Store answered a read with a fault."""


class PersistenceError(StoreError):
    """Store rejected a write. Nothing from the failed write is kept."""


# OperationalError covers both "cannot reach the database" and "bad SQL"
# (e.g. sqlite's "no such table"); only the former is a connectivity problem.
_CONNECTIVITY_MARKERS = (
    "unable to open database",
    "database is locked",
    "could not connect",
    "can't connect",
    "connection refused",
    "connection reset",
    "server closed the connection",
    "timeout",
    "timed out",
)


def is_connectivity_failure(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, (DisconnectionError, PoolTimeoutError, InterfaceError)):
        return True
    if isinstance(exc, OperationalError):
        if exc.connection_invalidated:
            return True
        text = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in text for marker in _CONNECTIVITY_MARKERS)
    return False


def translate(exc: SQLAlchemyError, operation: str, fallback: type[StoreError]) -> StoreError:
    if is_connectivity_failure(exc):
        return ConnectivityError(f"Store unreachable during {operation}")
    return fallback(f"Store failed during {operation}", details={"reason": exc.__class__.__name__})


@contextmanager
def store_read(operation: str):
    """Run reads; store faults surface as ConnectivityError or QueryError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate(exc, operation, QueryError) from exc


@contextmanager
def store_write(operation: str):
    """
    Run a unit of writes.

    Any failure rolls the session back, so a write either lands whole or not
    at all. Store faults surface as ConnectivityError or PersistenceError;
    every other exception is re-raised unchanged after the rollback.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate(exc, operation, PersistenceError) from exc
    except Exception:
        db.session.rollback()
        raise
