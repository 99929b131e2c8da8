# Overview: Row locking and retry helpers shared by stock and numbering code.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on the rows a stock write depends on.

    NOTE: SQLite ignores FOR UPDATE; the Product version_id check still
    catches a concurrent writer there (StaleDataError on flush).
    """
    return query.with_for_update()


@contextmanager
def savepoint():
    """
    Run one item's writes in a nested transaction.

    A failure rolls back only that item; the enclosing transaction (the
    document and the other items) is untouched and the error propagates.
    """
    nested = db.session.begin_nested()
    try:
        yield
        db.session.flush()
    except Exception:
        if nested.is_active:
            nested.rollback()
        raise
    else:
        nested.commit()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Call func(), rolling back and retrying on lock timeouts, deadlocks and
    optimistic version conflicts. func must be safe to re-run from scratch.
    """
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
