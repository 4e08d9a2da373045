from __future__ import annotations

from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy

_OUTER = "project_hub.transaction"


@contextmanager
def transaction(db: SQLAlchemy):
    """Commit on success, roll back on error.

    Nested calls join the outermost transaction, which alone commits.
    """
    session = db.session
    if session.info.get(_OUTER):
        yield session
        return

    session.info[_OUTER] = True
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.info.pop(_OUTER, None)


def paginate_query(query, *, page: int, limit: int):
    """Return (items, total) for a page of ``query`` (1-based page)."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total
