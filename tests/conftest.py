import pytest
from sqlalchemy.orm import sessionmaker

from greenlight.db import database
from greenlight.db.database import DatabaseSettings, create_db_engine, init_schema
from greenlight.utils import token_crypto

_DB_ENV_VARS = [
    "DATABASE_URL",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
    "POSTGRES_HOST",
    "POSTGRES_PORT",
    "POSTGRES_DB",
    "DB_MAX_OPEN_CONNS",
    "DB_MAX_IDLE_CONNS",
    "DB_MAX_IDLE_TIME",
    "DB_QUERY_TIMEOUT",
    "DB_POOL_TIMEOUT",
]


@pytest.fixture(autouse=True)
def _isolated_db_env(monkeypatch):
    """Keep the developer's database environment out of unit tests."""
    for var in _DB_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    database.refresh_database_settings()
    yield
    database.refresh_database_settings()


@pytest.fixture
def engine():
    # Fresh in-memory SQLite per test: repositories commit, so no shared state
    eng = create_db_engine(DatabaseSettings(url="sqlite+pysqlite:///:memory:"))
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def stored_password():
    """One Argon2 hash shared by tests that only need *a* valid credential."""
    return token_crypto.hash_password(token_crypto.CandidateCredential("pa55word-secret"))


@pytest.fixture
def make_user(db_session, stored_password):
    from greenlight.db import schemas
    from greenlight.db.repositories import users as user_repo

    counter = {"n": 0}

    def _make(email=None, name="Alice Smith", activated=True, password=None):
        counter["n"] += 1
        draft = schemas.UserDraft(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            password=password or stored_password,
            activated=activated,
        )
        return user_repo.insert_user(db_session, draft)

    return _make


@pytest.fixture
def make_movie(db_session):
    from greenlight.db import schemas
    from greenlight.db.repositories import movies as movie_repo
    from greenlight.utils.runtime import format_runtime

    def _make(title="Casablanca", year=1942, runtime=102, genres=("drama", "romance")):
        return movie_repo.insert_movie(
            db_session,
            schemas.MovieCreate(title=title, year=year, runtime=format_runtime(runtime), genres=list(genres)),
        )

    return _make
