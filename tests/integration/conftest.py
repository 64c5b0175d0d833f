import os
from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from greenlight.db.database import POSTGRES_DRIVER_SCHEME, DatabaseSettings, create_db_engine

ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="session")
def pg_url():
    postgres = pytest.importorskip("testcontainers.postgres")
    from alembic import command
    from alembic.config import Config

    image = os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine")
    try:
        container = postgres.PostgresContainer(image)
        container.start()
    except Exception as exc:  # docker unavailable
        pytest.skip(f"PostgreSQL container unavailable: {exc}")

    try:
        # Pin the psycopg2 driver whatever scheme the container reports
        url = POSTGRES_DRIVER_SCHEME + "://" + container.get_connection_url().split("://", 1)[1]
        os.environ["TEST_DATABASE_URL"] = url

        cfg = Config(str(ROOT / "alembic.ini"))
        cfg.set_main_option("script_location", str(ROOT / "migrations"))
        cfg.set_main_option("sqlalchemy.url", url)
        command.upgrade(cfg, "head")
        yield url
    finally:
        os.environ.pop("TEST_DATABASE_URL", None)
        container.stop()


@pytest.fixture(scope="session")
def pg_engine(pg_url):
    engine = create_db_engine(DatabaseSettings(url=pg_url, max_open_conns=5, max_idle_conns=5))
    yield engine
    engine.dispose()


@pytest.fixture
def pg_sessionmaker(pg_engine):
    # Repositories commit, so tables are truncated rather than rolled back
    with pg_engine.begin() as conn:
        conn.execute(text("TRUNCATE movies, tokens, users_permissions, users RESTART IDENTITY CASCADE"))
    return sessionmaker(bind=pg_engine, autocommit=False, autoflush=False)


@pytest.fixture
def pg_session(pg_sessionmaker):
    session = pg_sessionmaker()
    try:
        yield session
    finally:
        session.close()
