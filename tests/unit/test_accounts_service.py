import pytest

from greenlight.db.repositories import permissions as permission_repo
from greenlight.db.repositories import users as user_repo
from greenlight.errors import InvalidCredentials, RecordNotFound, ValidationFailed
from greenlight.services.accounts import AccountService
from greenlight.services.identity import Authenticated, resolve_identity
from greenlight.utils.permissions import PERMISSION_MOVIES_READ, PERMISSION_MOVIES_WRITE
from greenlight.utils.scopes import SCOPE_ACTIVATION, SCOPE_AUTHENTICATION


@pytest.fixture
def service(db_session):
    return AccountService(db_session)


def test_register_creates_inactive_user_with_default_permissions(db_session, service):
    user, token = service.register_user("Faith Smith", "faith@example.com", "pa55word")

    assert user.activated is False
    assert token.scope == SCOPE_ACTIVATION
    permissions = permission_repo.get_permissions_for_user(db_session, user.id)
    assert permissions.includes(PERMISSION_MOVIES_READ)
    assert not permissions.includes(PERMISSION_MOVIES_WRITE)
    assert user_repo.get_user_for_token(db_session, token.plaintext, SCOPE_ACTIVATION).id == user.id


def test_register_rejects_invalid_input(service):
    with pytest.raises(ValidationFailed) as exc:
        service.register_user("", "nope", "pa55word")
    assert set(exc.value.errors) == {"name", "email"}


def test_register_duplicate_email(service):
    service.register_user("Faith Smith", "faith@example.com", "pa55word")
    with pytest.raises(ValidationFailed) as exc:
        service.register_user("Someone Else", "faith@example.com", "pa55word")
    assert exc.value.errors == {"email": "a user with this email address already exists"}


def test_activate_consumes_the_token(db_session, service):
    user, token = service.register_user("Faith Smith", "faith@example.com", "pa55word")

    activated = service.activate_user(token.plaintext)
    assert activated.activated is True
    assert activated.version == user.version + 1
    with pytest.raises(RecordNotFound):
        user_repo.get_user_for_token(db_session, token.plaintext, SCOPE_ACTIVATION)

    with pytest.raises(ValidationFailed) as exc:
        service.activate_user(token.plaintext)
    assert exc.value.errors == {"token": "invalid or expired activation token"}


def test_activate_rejects_malformed_token(service):
    with pytest.raises(ValidationFailed) as exc:
        service.activate_user("bad")
    assert exc.value.errors == {"token": "must be 26 bytes long"}


def test_authentication_token_round_trip(db_session, service):
    user, _ = service.register_user("Faith Smith", "faith@example.com", "pa55word")
    token = service.create_authentication_token("faith@example.com", "pa55word")

    assert token.scope == SCOPE_AUTHENTICATION
    identity = resolve_identity(db_session, f"Bearer {token.plaintext}")
    assert isinstance(identity, Authenticated)
    assert identity.user.id == user.id


@pytest.mark.parametrize(
    "email,password",
    [
        ("faith@example.com", "wrong-password"),
        ("nobody@example.com", "pa55word"),
    ],
)
def test_bad_credentials(service, email, password):
    service.register_user("Faith Smith", "faith@example.com", "pa55word")
    with pytest.raises(InvalidCredentials):
        service.create_authentication_token(email, password)


def test_logout_revokes_authentication_tokens(db_session, service):
    user, _ = service.register_user("Faith Smith", "faith@example.com", "pa55word")
    token = service.create_authentication_token("faith@example.com", "pa55word")

    service.logout(user.id)
    with pytest.raises(InvalidCredentials):
        resolve_identity(db_session, f"Bearer {token.plaintext}")
