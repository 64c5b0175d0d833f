"""
Database engine and session management.

Builds the SQLAlchemy engine (and its bounded connection pool) from
environment configuration. The pool belongs to the hosting process:
repositories never create engines, they receive a Session.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

POSTGRES_DRIVER_SCHEME = "postgresql+psycopg2"


def parse_duration(value: str) -> float:
    """Parse '3s', '15m', '500ms', '1h' (bare numbers are seconds) into seconds."""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit or "s"]


def normalize_database_url(url: str) -> str:
    """Pin bare PostgreSQL URLs to the psycopg2 driver."""
    scheme, sep, rest = url.partition("://")
    if sep and scheme in ("postgres", "postgresql"):
        return f"{POSTGRES_DRIVER_SCHEME}://{rest}"
    return url


def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return normalize_database_url(os.getenv("DATABASE_URL"))

    # Otherwise, generate from individual components (all must be set)
    components = {
        "POSTGRES_USER": os.getenv("POSTGRES_USER"),
        "POSTGRES_PASSWORD": os.getenv("POSTGRES_PASSWORD"),
        "POSTGRES_HOST": os.getenv("POSTGRES_HOST"),
        "POSTGRES_PORT": os.getenv("POSTGRES_PORT"),
        "POSTGRES_DB": os.getenv("POSTGRES_DB"),
    }
    missing = [name for name, value in components.items() if not value]
    if missing:
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return (
        f"{POSTGRES_DRIVER_SCHEME}://{components['POSTGRES_USER']}:{components['POSTGRES_PASSWORD']}"
        f"@{components['POSTGRES_HOST']}:{components['POSTGRES_PORT']}/{components['POSTGRES_DB']}"
    )


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    max_open_conns: int = 25
    max_idle_conns: int = 25
    max_idle_time: float = 15 * 60.0
    query_timeout: float = 3.0
    pool_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        return cls(
            url=_get_database_url(),
            max_open_conns=int(os.getenv("DB_MAX_OPEN_CONNS", "25")),
            max_idle_conns=int(os.getenv("DB_MAX_IDLE_CONNS", "25")),
            max_idle_time=parse_duration(os.getenv("DB_MAX_IDLE_TIME", "15m")),
            query_timeout=parse_duration(os.getenv("DB_QUERY_TIMEOUT", "3s")),
            pool_timeout=parse_duration(os.getenv("DB_POOL_TIMEOUT", "5s")),
        )


@lru_cache(maxsize=None)
def get_database_settings() -> DatabaseSettings:
    """Return the cached database settings sourced from the environment."""
    return DatabaseSettings.from_env()


def refresh_database_settings() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_database_settings.cache_clear()


def query_timeout() -> float:
    """Per-operation deadline in seconds.

    Falls back to the default when no database is configured so that pure
    unit tests can run without any environment.
    """
    try:
        return get_database_settings().query_timeout
    except ValueError:
        return DatabaseSettings.query_timeout


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: DatabaseSettings) -> Engine:
    """Create an engine whose pool is sized independently of request concurrency."""
    if settings.url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in settings.url or settings.url in ("sqlite://", "sqlite+pysqlite://"):
            # In-memory SQLite with StaticPool so the schema persists across connections
            kwargs["poolclass"] = StaticPool
        engine = create_engine(settings.url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    idle = max(0, min(settings.max_idle_conns, settings.max_open_conns))
    engine = create_engine(
        normalize_database_url(settings.url),
        pool_size=idle,
        max_overflow=max(0, settings.max_open_conns - idle),
        pool_recycle=int(settings.max_idle_time) if settings.max_idle_time > 0 else -1,
        pool_timeout=settings.pool_timeout,
        pool_pre_ping=True,
    )
    logger.info(
        "database connection pool configured (max_open=%d, max_idle=%d)",
        settings.max_open_conns,
        idle,
    )
    return engine


@lru_cache(maxsize=None)
def get_engine() -> Engine:
    return create_db_engine(get_database_settings())


@lru_cache(maxsize=None)
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_schema(bind, permission_codes: Optional[Iterable[str]] = None) -> None:
    """Create all tables and seed permission codes.

    Intended for SQLite test and development databases; PostgreSQL deployments
    are managed by the Alembic migrations.
    """
    from greenlight.db import models
    from greenlight.db.repositories import permissions as permission_repo
    from greenlight.utils.permissions import ALL_PERMISSIONS

    models.Base.metadata.create_all(bind=bind)
    with Session(bind=bind) as db:
        permission_repo.ensure_permission_codes(
            db, sorted(ALL_PERMISSIONS if permission_codes is None else permission_codes)
        )


def get_db() -> Iterator[Session]:
    """Yield a session bound to the process-wide pool and close it afterwards."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
