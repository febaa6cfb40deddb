import pytest

from models.credential import AccessLevel
from models.user import Position
from utils.exceptions import (
    BadPasswordError,
    DuplicateEmailError,
    DuplicateUserError,
    DuplicateUsernameError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from utils.security import is_legacy_hash, legacy_hash


def _count_users(db):
    with db.connection() as conn:
        return conn.execute("SELECT COUNT(*) FROM User").fetchone()[0]


def test_register_creates_user(identity):
    user = identity.register("  Jane ", "Doe", Position.ADMIN)
    assert user.id > 0
    assert user.full_name == "Jane Doe"
    assert user.position_name == "Admin"
    assert identity.get_user(user.id) == user


def test_register_requires_names(identity):
    with pytest.raises(ValidationError):
        identity.register("", "Doe")


def test_jane_doe_scenario(identity):
    jane = identity.register("Jane", "Doe", Position.USER)
    identity.create_credential("jane", "pw1", AccessLevel.READ_WRITE, "j@x.com", jane.id)

    assert identity.authenticate("jane", "pw1") == jane
    with pytest.raises(BadPasswordError):
        identity.authenticate("jane", "wrong")


def test_authenticate_unknown_user(identity):
    with pytest.raises(NotFoundError):
        identity.authenticate("nobody", "pw")


def test_password_is_never_stored_in_plaintext(identity, credential_dao):
    jane = identity.register("Jane", "Doe")
    identity.create_credential("jane", "pw1", AccessLevel.READ, "j@x.com", jane.id)
    stored = credential_dao.get_by_username("jane").password_hash
    assert stored != "pw1"
    assert "pw1" not in stored


def test_legacy_scheme_stores_salted_md5(legacy_identity, credential_dao):
    jane = legacy_identity.register("Jane", "Doe")
    legacy_identity.create_credential("jane", "pw1", AccessLevel.READ, "j@x.com", jane.id)
    stored = credential_dao.get_by_username("jane").password_hash
    assert stored == legacy_hash("pw1", jane.id)
    assert legacy_identity.authenticate("jane", "pw1") == jane
    with pytest.raises(BadPasswordError):
        legacy_identity.authenticate("jane", "pw2")


def test_duplicate_username_rejected(identity, john):
    jane = identity.register("Jane", "Doe")
    identity.create_credential("jane", "pw1", AccessLevel.READ, "j@x.com", jane.id)
    with pytest.raises(DuplicateUsernameError):
        identity.create_credential("jane", "pw2", AccessLevel.READ, "other@x.com", john.id)


def test_duplicate_email_rejected(identity, john):
    jane = identity.register("Jane", "Doe")
    identity.create_credential("jane", "pw1", AccessLevel.READ, "j@x.com", jane.id)
    with pytest.raises(DuplicateEmailError):
        identity.create_credential("john", "pw2", AccessLevel.READ, "j@x.com", john.id)


def test_second_login_for_same_user_fails(identity):
    jane = identity.register("Jane", "Doe")
    identity.create_credential("jane", "pw1", AccessLevel.READ, "j@x.com", jane.id)
    with pytest.raises(PersistenceError):
        identity.create_credential("jane2", "pw1", AccessLevel.READ, "j2@x.com", jane.id)


def test_find_by_username_and_email(identity):
    jane = identity.register("Jane", "Doe")
    identity.create_credential("jane", "pw1", AccessLevel.READ_WRITE_DELETE, "j@x.com", jane.id)
    by_name = identity.find_by_username("jane")
    by_email = identity.find_by_email("j@x.com")
    assert by_name.id == by_email.id
    assert by_name.user_id == jane.id
    assert by_name.access_level_name == "Read/Write/Delete"
    assert identity.find_by_username("missing") is None
    assert identity.find_by_email("missing@x.com") is None


def test_reset_password(identity):
    jane = identity.register("Jane", "Doe")
    credential = identity.create_credential("jane", "old", AccessLevel.READ, "j@x.com", jane.id)

    identity.reset_password(credential, "new")

    assert identity.authenticate("jane", "new") == jane
    with pytest.raises(BadPasswordError):
        identity.authenticate("jane", "old")
    assert identity.check_password(credential, "new")


def test_reset_password_rolls_back_on_store_failure(identity, credential_dao, monkeypatch):
    jane = identity.register("Jane", "Doe")
    credential = identity.create_credential("jane", "old", AccessLevel.READ, "j@x.com", jane.id)
    before = credential.password_hash

    def fail(username, password_hash):
        raise PersistenceError("disk full")

    monkeypatch.setattr(credential_dao, "update_password", fail)
    with pytest.raises(PersistenceError):
        identity.reset_password(credential, "new")

    assert credential.password_hash == before
    assert identity.check_password(credential, "old")
    assert not identity.check_password(credential, "new")


def test_reset_password_for_unknown_login_fails(identity):
    jane = identity.register("Jane", "Doe")
    credential = identity.create_credential("jane", "old", AccessLevel.READ, "j@x.com", jane.id)
    credential.username = "renamed"
    with pytest.raises(PersistenceError):
        identity.reset_password(credential, "new")
    assert identity.check_password(credential, "old")


def test_reset_password_by_email(identity):
    jane = identity.register("Jane", "Doe")
    identity.create_credential("jane", "old", AccessLevel.READ, "j@x.com", jane.id)
    identity.reset_password_by_email("j@x.com", "new")
    assert identity.authenticate("jane", "new") == jane
    with pytest.raises(NotFoundError):
        identity.reset_password_by_email("nobody@x.com", "new")


def test_login_upgrades_legacy_hash(legacy_identity, identity, credential_dao):
    jane = legacy_identity.register("Jane", "Doe")
    legacy_identity.create_credential("jane", "pw1", AccessLevel.READ, "j@x.com", jane.id)

    assert identity.authenticate("jane", "pw1") == jane

    stored = credential_dao.get_by_username("jane").password_hash
    assert not is_legacy_hash(stored)
    assert identity.authenticate("jane", "pw1") == jane


def test_login_keeps_legacy_hash_too_long_for_bcrypt(legacy_identity, identity, credential_dao):
    jane = legacy_identity.register("Jane", "Doe")
    password = "x" * 80
    legacy_identity.create_credential("jane", password, AccessLevel.READ, "j@x.com", jane.id)

    assert identity.authenticate("jane", password) == jane

    stored = credential_dao.get_by_username("jane").password_hash
    assert stored == legacy_hash(password, jane.id)
    with pytest.raises(BadPasswordError):
        identity.authenticate("jane", "x" * 79)


def test_register_account(identity):
    user, credential = identity.register_account("Jane", "Doe", "jane", "pw1", "j@x.com")
    assert credential.user_id == user.id
    assert credential.access_level == AccessLevel.READ_WRITE_DELETE
    assert identity.authenticate("jane", "pw1") == user


def test_register_account_is_atomic(identity, db):
    identity.register_account("Jane", "Doe", "jane", "pw1", "j@x.com")
    before = _count_users(db)

    with pytest.raises(DuplicateUserError):
        identity.register_account("Other", "Person", "other", "pw", "j@x.com")
    with pytest.raises(DuplicateUsernameError):
        identity.register_account("Other", "Person", "jane", "pw", "o@x.com")

    assert _count_users(db) == before


@pytest.mark.parametrize("username,password,email", [
    ("", "pw", "j@x.com"),
    ("jane", "", "j@x.com"),
    ("jane", "pw", "not-an-email"),
])
def test_credential_validation(identity, username, password, email):
    jane = identity.register("Jane", "Doe")
    with pytest.raises(ValidationError):
        identity.create_credential(username, password, AccessLevel.READ, email, jane.id)


def test_update_name(identity):
    jane = identity.register("Jane", "Doe")
    updated = identity.update_name(jane.id, "Janet", "Doe")
    assert updated.id == jane.id
    assert updated.first_name == "Janet"


def test_credentials_order_by_access_level(identity, john):
    jane = identity.register("Jane", "Doe")
    reader = identity.create_credential("jane", "pw", AccessLevel.READ, "j@x.com", jane.id)
    admin = identity.create_credential("john", "pw", AccessLevel.READ_WRITE_DELETE, "jo@x.com", john.id)
    assert reader < admin
    assert admin >= reader
    assert not reader.can_write()


def test_credentials_with_same_access_level_are_distinct(identity, credential_dao, john):
    jane = identity.register("Jane", "Doe")
    first = identity.create_credential("jane", "pw", AccessLevel.READ, "j@x.com", jane.id)
    second = identity.create_credential("john", "pw", AccessLevel.READ, "jo@x.com", john.id)

    assert first != second
    assert first <= second and second <= first
    assert not first < second
    assert credential_dao.get_by_username("jane") == first
    assert admin.can_delete()
