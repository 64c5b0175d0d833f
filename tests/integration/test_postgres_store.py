import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import text

from greenlight.db import models, schemas
from greenlight.db.filters import resolve_filters
from greenlight.db.repositories import movies as movie_repo
from greenlight.db.repositories import permissions as permission_repo
from greenlight.db.repositories import tokens as token_repo
from greenlight.db.repositories import users as user_repo
from greenlight.db.store_utils import deadline
from greenlight.errors import DuplicateKey, EditConflict, StoreTimeout
from greenlight.services.accounts import AccountService
from greenlight.services.movies import MOVIE_SORT_SAFELIST
from greenlight.utils import token_crypto
from greenlight.utils.permissions import PERMISSION_MOVIES_READ
from greenlight.utils.runtime import format_runtime
from greenlight.utils.scopes import SCOPE_AUTHENTICATION

pytestmark = pytest.mark.integration


def _movie(title, year, runtime, genres):
    return schemas.MovieCreate(title=title, year=year, runtime=format_runtime(runtime), genres=genres)


def _draft(email):
    return schemas.UserDraft(
        name="Alice Smith",
        email=email,
        password=token_crypto.hash_password(token_crypto.CandidateCredential("pa55word")),
        activated=True,
    )


@pytest.fixture
def catalogue(pg_session):
    return [
        movie_repo.insert_movie(pg_session, _movie("Moana", 2016, 107, ["animation", "adventure"])),
        movie_repo.insert_movie(pg_session, _movie("Black Panther", 2018, 134, ["action", "adventure"])),
        movie_repo.insert_movie(pg_session, _movie("The Black Cauldron", 1985, 80, ["animation", "fantasy"])),
    ]


def test_full_text_title_search(pg_session, catalogue):
    filters = resolve_filters("title", MOVIE_SORT_SAFELIST)
    movies, meta = movie_repo.list_movies(pg_session, "BLACK", [], filters)
    assert [m.title for m in movies] == ["Black Panther", "The Black Cauldron"]
    assert meta.total_records == 2


def test_genre_array_containment(pg_session, catalogue):
    filters = resolve_filters("-year", MOVIE_SORT_SAFELIST)
    movies, _ = movie_repo.list_movies(pg_session, "", ["animation"], filters)
    assert [m.title for m in movies] == ["Moana", "The Black Cauldron"]


def test_year_check_constraint_is_enforced(pg_session):
    from sqlalchemy.exc import IntegrityError

    with pytest.raises(IntegrityError):
        movie_repo.insert_movie(pg_session, schemas.MovieCreate.model_construct(
            title="Too Early", year=1700, runtime=10, genres=["drama"],
        ))


def test_concurrent_updates_only_one_wins(pg_sessionmaker, catalogue):
    movie = catalogue[0]
    barrier = threading.Barrier(2)

    def writer(title):
        session = pg_sessionmaker()
        try:
            current = movie_repo.get_movie(session, movie.id)
            assert not session.in_transaction()
            barrier.wait(timeout=5)
            return movie_repo.update_movie(session, current.model_copy(update={"title": title}))
        except EditConflict as exc:
            return exc
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(writer, ["First", "Second"]))

    conflicts = [r for r in results if isinstance(r, EditConflict)]
    winners = [r for r in results if isinstance(r, schemas.Movie)]
    assert len(conflicts) == 1
    assert len(winners) == 1
    assert winners[0].version == 2

    session = pg_sessionmaker()
    try:
        stored = movie_repo.get_movie(session, movie.id)
    finally:
        session.close()
    assert stored.title == winners[0].title
    assert stored.version == 2


def test_statement_timeout_surfaces_as_store_timeout(pg_session):
    with pytest.raises(StoreTimeout):
        with deadline(pg_session, "slow query", timeout=0.2):
            pg_session.execute(text("SELECT pg_sleep(2)"))
    # session is usable after the rollback
    assert pg_session.execute(text("SELECT 1")).scalar() == 1


def test_duplicate_email_reports_constraint(pg_session):
    user_repo.insert_user(pg_session, _draft("dup@example.com"))
    with pytest.raises(DuplicateKey) as exc:
        user_repo.insert_user(pg_session, _draft("dup@example.com"))
    assert exc.value.constraint == "users_email_key"


def test_token_digest_round_trip(pg_session):
    user = user_repo.insert_user(pg_session, _draft("tokens@example.com"))
    token = token_repo.new_token(pg_session, user.id, timedelta(hours=1), SCOPE_AUTHENTICATION)

    row = pg_session.query(models.Token).one()
    assert bytes(row.hash) == token_crypto.hash_token(token.plaintext)
    assert user_repo.get_user_for_token(pg_session, token.plaintext, SCOPE_AUTHENTICATION).id == user.id


def test_registration_grants_seeded_permission(pg_session):
    user, _ = AccountService(pg_session).register_user("Faith", "faith@example.com", "pa55word")
    assert permission_repo.get_permissions_for_user(pg_session, user.id).codes == (PERMISSION_MOVIES_READ,)
