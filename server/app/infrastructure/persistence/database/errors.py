from __future__ import annotations
"""server/app/infrastructure/persistence/database/errors.py
~~~~~~~~~~~~~~~~~~~~~~~~
Traduction des exceptions SQLAlchemy vers la taxonomie du domaine.

    with store_errors():
        session.flush()

- StaleDataError (version_id_col)        -> Conflict
- timeout requête / verrou, "locked"     -> StoreTimeout
- autre OperationalError / InterfaceError -> StoreUnavailable
- IntegrityError                          -> ValidationError
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.domain.errors import Conflict, StoreTimeout, StoreUnavailable, ValidationError

# query_canceled (statement_timeout), lock_not_available (lock_timeout)
_PG_TIMEOUT_CODES = {"57014", "55P03"}
_TIMEOUT_MARKERS = ("timeout", "timed out", "canceling statement", "database is locked")


def _is_timeout(exc: DBAPIError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _PG_TIMEOUT_CODES:
        return True
    text = str(orig if orig is not None else exc).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def store_errors() -> Iterator[None]:
    """Context manager : rien n'est avalé, tout est re-typé (chaîné via `from`)."""
    try:
        yield
    except StaleDataError as exc:
        raise Conflict("row was modified concurrently, retry once") from exc
    except PoolTimeoutError as exc:
        raise StoreTimeout("connection pool timeout") from exc
    except IntegrityError as exc:
        raise ValidationError(None, f"constraint violated: {exc.orig}") from exc
    except OperationalError as exc:
        if _is_timeout(exc):
            raise StoreTimeout(str(exc.orig)) from exc
        raise StoreUnavailable(str(exc.orig)) from exc
    except (InterfaceError, DisconnectionError) as exc:
        raise StoreUnavailable(str(exc)) from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreUnavailable(str(exc.orig)) from exc
        raise


def commit(session: Session) -> None:
    """Commit avec traduction d'erreurs ; rollback si le commit échoue."""
    try:
        with store_errors():
            session.commit()
    except Exception:
        session.rollback()
        raise
