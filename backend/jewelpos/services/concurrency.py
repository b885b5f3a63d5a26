# Overview: Unit-of-work helpers shared by every write path: writer lock, row locks, retry.

from __future__ import annotations

import logging
import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import PersistenceError

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there begin_write() takes the
    database writer lock instead.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the unit of work.

    On SQLite, BEGIN IMMEDIATE grabs the writer lock before the first read,
    so two units can never both decide on the same stale snapshot. Must be
    the first statement of the unit.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Execute a unit of work, rolling the session back on any failure.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). When retries are exhausted, or on any
    other database error, raises PersistenceError. ServiceError subclasses
    raised by `func` propagate unchanged after the rollback.
    """
    if attempts is None:
        attempts = current_app.config.get("DB_RETRY_ATTEMPTS", 3)

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                logger.warning("Unit of work failed after %d attempts: %s", attempts, exc)
                raise PersistenceError(
                    "Database is busy, please retry",
                    details={"reason": type(exc).__name__},
                ) from exc
            time.sleep(backoff_base * (2 ** attempt))
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Unit of work failed")
            raise PersistenceError("Database error", details={"reason": type(exc).__name__}) from exc
        except Exception:
            db.session.rollback()
            raise

