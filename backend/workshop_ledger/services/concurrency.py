# Overview: Transaction helpers shared by the ledger services: row locks, retries, conflict mapping.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, session=None):
    """
    Execute a DB operation with retry on transient lock failures.

    Retries OperationalError (deadlocks, busy database). Version races are not
    retried here: they surface as ConflictError so the caller decides.
    """
    session = session or db.session
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


@contextmanager
def atomic(session, *, conflict_message: str, details: dict | None = None):
    """
    Run a block of writes as one transaction and commit it.

    A unique-constraint violation or an optimistic-lock miss (at flush or at
    commit) means another writer got there first: the whole unit is rolled
    back and reported as a retryable ConflictError. Anything else rolls back
    and propagates.
    """
    try:
        yield
        session.commit()
    except (IntegrityError, StaleDataError) as exc:
        session.rollback()
        raise ConflictError(conflict_message, retryable=True, details=details) from exc
    except Exception:
        session.rollback()
        raise
