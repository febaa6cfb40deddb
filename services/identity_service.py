import logging

from database.credential_dao import CredentialDAO
from database.db_manager import DatabaseManager
from database.user_dao import UserDAO
from models.credential import AccessLevel, Credential
from models.user import Position, User
from utils.exceptions import (
    BadPasswordError,
    DuplicateEmailError,
    DuplicateUsernameError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from utils.security import BcryptHasher

logger = logging.getLogger(__name__)


class IdentityService:
    """Users, their logins and password checks.

    The hasher decides how new hashes are made; verification accepts both
    legacy MD5 and bcrypt hashes so older databases keep working.
    """

    def __init__(self, db: DatabaseManager, user_dao: UserDAO, credential_dao: CredentialDAO, hasher=None):
        self._db = db
        self._user_dao = user_dao
        self._dao = credential_dao
        self._hasher = hasher or BcryptHasher()

    @property
    def hash_scheme(self) -> str:
        return self._hasher.scheme

    # ── Users ────────────────────────────────────────────────────────────────

    def register(self, first_name: str, last_name: str, position: Position = Position.USER) -> User:
        """Create the User row only; the caller creates the login separately."""
        first_name, last_name = self._validate_names(first_name, last_name)
        try:
            user = self._user_dao.create(first_name, last_name, Position(position))
        except PersistenceError:
            logger.error("Failed to create user %s %s", first_name, last_name)
            raise
        logger.info("Registered user %d", user.id)
        return user

    def get_user(self, user_id: int) -> User | None:
        return self._user_dao.get_by_id(user_id)

    def update_name(self, user_id: int, first_name: str, last_name: str) -> User:
        first_name, last_name = self._validate_names(first_name, last_name)
        return self._user_dao.update_name(user_id, first_name, last_name)

    # ── Logins ───────────────────────────────────────────────────────────────

    def create_credential(
        self,
        username: str,
        password: str,
        access_level: AccessLevel,
        email: str,
        user_id: int,
    ) -> Credential:
        username, email = self._validate_login(username, password, email)
        if self._dao.get_by_username(username):
            raise DuplicateUsernameError(f"Username '{username}' already exists.")
        if self._dao.get_by_email(email):
            raise DuplicateEmailError(f"Email '{email}' is already registered.")
        password_hash = self._hasher.hash(password, user_id)
        try:
            credential = self._dao.create(
                username, password_hash, AccessLevel(access_level), email, user_id
            )
        except PersistenceError:
            logger.error("Failed to create login '%s' for user %d", username, user_id)
            raise
        logger.info("Created login '%s' for user %d", username, user_id)
        return credential

    def register_account(
        self,
        first_name: str,
        last_name: str,
        username: str,
        password: str,
        email: str,
        position: Position = Position.USER,
        access_level: AccessLevel = AccessLevel.READ_WRITE_DELETE,
    ) -> tuple[User, Credential]:
        """Create a user and their login together; neither is kept if either fails."""
        self._validate_login(username, password, email)
        with self._db.transaction():
            user = self.register(first_name, last_name, position)
            credential = self.create_credential(
                username, password, access_level, email, user.id
            )
        return user, credential

    def find_by_username(self, username: str) -> Credential | None:
        return self._dao.get_by_username(username.strip())

    def find_by_email(self, email: str) -> Credential | None:
        return self._dao.get_by_email(email.strip())

    def check_password(self, credential: Credential, password: str) -> bool:
        return self._hasher.verify(password, credential.password_hash, credential.user_id)

    def authenticate(self, username: str, password: str) -> User:
        credential = self.find_by_username(username)
        if credential is None:
            logger.info("Login failed: unknown username '%s'", username)
            raise NotFoundError(f"Username '{username}' does not exist.")
        if not self.check_password(credential, password):
            logger.info("Login failed: bad password for '%s'", username)
            raise BadPasswordError("Username and password combination not found.")
        user = self._user_dao.get_by_id(credential.user_id)
        if user is None:
            raise NotFoundError(f"No user for login '{username}'.")
        if self._hasher.needs_rehash(credential.password_hash):
            self._upgrade_hash(credential, password)
        return user

    def reset_password(self, credential: Credential, new_password: str) -> Credential:
        """Rehash and persist. On failure the credential keeps its previous hash."""
        if not new_password:
            raise ValidationError("Password cannot be empty.")
        previous = credential.password_hash
        credential.password_hash = self._hasher.hash(new_password, credential.user_id)
        try:
            self._dao.update_password(credential.username, credential.password_hash)
        except PersistenceError:
            credential.password_hash = previous
            logger.error("Password reset failed for '%s'", credential.username)
            raise
        logger.info("Password reset for '%s'", credential.username)
        return credential

    def reset_password_by_email(self, email: str, new_password: str) -> Credential:
        credential = self.find_by_email(email)
        if credential is None:
            raise NotFoundError(f"No login registered with email '{email}'.")
        return self.reset_password(credential, new_password)

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _upgrade_hash(self, credential: Credential, password: str):
        # The login already succeeded, so a failed upgrade leaves the old hash in place.
        try:
            self.reset_password(credential, password)
        except ValidationError as exc:
            logger.info("Keeping legacy hash for '%s': %s", credential.username, exc)
        except PersistenceError:
            logger.warning("Could not upgrade password hash for '%s'", credential.username)

    @staticmethod
    def _validate_names(first_name: str, last_name: str) -> tuple[str, str]:
        first_name, last_name = first_name.strip(), last_name.strip()
        if not first_name or not last_name:
            raise ValidationError("First and last name are required.")
        return first_name, last_name

    @staticmethod
    def _validate_login(username: str, password: str, email: str) -> tuple[str, str]:
        username, email = username.strip(), email.strip()
        if not username:
            raise ValidationError("Username cannot be empty.")
        if not password:
            raise ValidationError("Password cannot be empty.")
        if not email or "@" not in email:
            raise ValidationError("A valid email address is required.")
        return username, email
