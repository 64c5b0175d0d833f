import pytest

from greenlight.db import schemas
from greenlight.db.repositories import users as user_repo
from greenlight.errors import ContractViolation, DuplicateKey, EditConflict, RecordNotFound
from greenlight.utils import token_crypto


def test_insert_and_fetch(db_session, make_user):
    user = make_user(email="alice@example.com", activated=False)
    assert user.id >= 1
    assert user.version == 1
    assert user.activated is False

    by_email = user_repo.get_user_by_email(db_session, "alice@example.com")
    by_id = user_repo.get_user(db_session, user.id)
    assert by_email.id == by_id.id == user.id
    assert token_crypto.password_matches(by_email.password, "pa55word-secret")


def test_unknown_user(db_session):
    with pytest.raises(RecordNotFound):
        user_repo.get_user_by_email(db_session, "nobody@example.com")
    with pytest.raises(RecordNotFound):
        user_repo.get_user(db_session, 0)


def test_duplicate_email_on_insert(db_session, make_user):
    make_user(email="dup@example.com")
    with pytest.raises(DuplicateKey) as exc:
        make_user(email="dup@example.com")
    assert exc.value.constraint == "users_email_key"


def test_duplicate_email_on_update(db_session, make_user):
    make_user(email="taken@example.com")
    other = make_user(email="free@example.com")
    with pytest.raises(DuplicateKey):
        user_repo.update_user(db_session, other.model_copy(update={"email": "taken@example.com"}))
    assert user_repo.get_user(db_session, other.id).email == "free@example.com"


def test_insert_without_password_hash_is_a_contract_violation(db_session):
    draft = schemas.UserDraft(name="No Hash", email="nohash@example.com")
    with pytest.raises(ContractViolation):
        user_repo.insert_user(db_session, draft)


def test_update_without_password_hash_is_a_contract_violation(db_session, make_user):
    user = make_user()
    with pytest.raises(ContractViolation):
        user_repo.update_user(db_session, user.model_copy(update={"password": None}))


def test_update_versions_and_conflicts(db_session, make_user):
    user = make_user(activated=False)
    updated = user_repo.update_user(db_session, user.model_copy(update={"activated": True, "name": "Alice S."}))
    assert updated.version == 2

    stored = user_repo.get_user(db_session, user.id)
    assert stored.activated is True
    assert stored.name == "Alice S."
    assert stored.version == 2

    with pytest.raises(EditConflict):
        user_repo.update_user(db_session, user.model_copy(update={"name": "Stale"}))
    assert user_repo.get_user(db_session, user.id).name == "Alice S."


def test_password_change_is_persisted(db_session, make_user):
    user = make_user()
    new_hash = token_crypto.hash_password(token_crypto.CandidateCredential("another-password"))
    user_repo.update_user(db_session, user.model_copy(update={"password": new_hash}))

    stored = user_repo.get_user(db_session, user.id)
    assert token_crypto.password_matches(stored.password, "another-password")
    assert not token_crypto.password_matches(stored.password, "pa55word-secret")
