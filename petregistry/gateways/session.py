from __future__ import annotations

from contextlib import contextmanager

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db

_DEPTH_KEY = "petregistry.tx_depth"


@contextmanager
def transaction(action: str):
    """Run a unit of work on the scoped session.

    The outermost scope commits on success and rolls back on any error;
    nested scopes join it. Database errors come out as ``StorageError``.
    """
    session = db.session
    depth = session.info.get(_DEPTH_KEY, 0)
    session.info[_DEPTH_KEY] = depth + 1
    try:
        yield session
        if depth == 0:
            session.commit()
    except SQLAlchemyError as exc:
        if depth == 0:
            session.rollback()
        logger.error("Could not {}: {}", action, exc)
        raise StorageError(f"Could not {action}: {exc}") from exc
    except Exception:
        if depth == 0:
            session.rollback()
        raise
    finally:
        session.info[_DEPTH_KEY] = depth
