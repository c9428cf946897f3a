from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from staffscope.errors import InfrastructureError, StaffScopeError
from staffscope.settings import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db() -> Generator[Session, None, None]:
    """
    Main DB dependency: one session per request, always closed.

    Writes that span several rows go through `atomic()` so the request either
    commits all of them or none.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Unit of work around a multi-entity write.

    - Commits when the block finishes.
    - Rolls back on any exception.
    - Domain errors propagate unchanged; other storage errors become an opaque
      `InfrastructureError` (the driver detail is logged, not returned).
    """

    try:
        yield db
        db.commit()
    except StaffScopeError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise _infrastructure_error(exc) from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def storage_errors() -> Iterator[None]:
    """
    Read-side counterpart of `atomic()`: no commit or rollback, but any
    storage failure still leaves as an opaque `InfrastructureError`.

    Usable as a decorator (`@storage_errors()`) on lookup functions.
    """

    try:
        yield
    except SQLAlchemyError as exc:
        raise _infrastructure_error(exc) from exc


def _infrastructure_error(exc: SQLAlchemyError) -> InfrastructureError:
    logger.error("Storage operation failed: %s", exc.__class__.__name__, exc_info=True)
    return InfrastructureError("Storage operation failed")


def violates_constraint(exc: IntegrityError, *markers: str) -> bool:
    """
    True when the integrity error mentions any of `markers`.

    Markers should include both the constraint name (reported by PostgreSQL)
    and the `table.column` form (reported by SQLite).
    """

    text = str(getattr(exc, "orig", exc))
    return any(marker in text for marker in markers)
