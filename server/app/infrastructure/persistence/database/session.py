# server/app/infrastructure/persistence/database/session.py
from __future__ import annotations

"""SQLAlchemy engine/session setup + FastAPI dependency."""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _connect_args(backend: str, db_name: str) -> tuple[dict, dict]:
    """
    Retourne (connect_args, kwargs moteur) selon le dialecte.
    - PostgreSQL : connect_timeout + statement_timeout/lock_timeout (ms)
    - SQLite     : busy timeout (s) ; base mémoire partagée via StaticPool
    """
    kwargs: dict = {}
    connect_args: dict = {}
    timeout_ms = int(settings.DB_STATEMENT_TIMEOUT_MS)

    if backend.startswith("postgresql") or backend == "postgres":
        connect_args["connect_timeout"] = int(settings.DB_CONNECT_TIMEOUT)
        connect_args["options"] = f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}"
    elif backend.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = timeout_ms / 1000.0
        if db_name in ("", ":memory:"):
            kwargs["poolclass"] = StaticPool
    return connect_args, kwargs


def init_engine() -> Engine:
    """
    Create a singleton SQLAlchemy Engine, with dialect-aware connect_args.
    Les timeouts sont posés ici : un store lent remonte en StoreTimeout
    (voir database/errors.py), jamais rejoué par le moteur.
    """
    global _engine
    if _engine is not None:
        return _engine

    url = make_url(settings.DATABASE_URL)
    backend = url.get_backend_name()  # e.g. "postgresql", "sqlite"
    connect_args, extra = _connect_args(backend, (url.database or "").strip())

    _engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        future=True,
        pool_pre_ping=True,
        **extra,
    )
    return _engine


def init_sessionmaker() -> sessionmaker:
    """Create (once) and return the SessionLocal factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=init_engine(),
            future=True,
            autoflush=True,
            expire_on_commit=False,
        )
    return _SessionLocal


def get_session() -> Session:
    """Return a new Session (caller is responsible for closing it)."""
    return init_sessionmaker()()


@contextmanager
def get_sync_session() -> Iterator[Session]:
    """Context manager: `with get_sync_session() as s:`"""
    s = get_session()
    try:
        yield s
    finally:
        s.close()


# FastAPI dependency (auto-close)
def get_db() -> Iterator[Session]:
    """
    Usage:
        def endpoint(db: Session = Depends(get_db)): ...
    """
    db = get_session()
    try:
        yield db
    finally:
        db.close()
