"""Password hashers.

Two schemes share one interface:

* ``legacy-md5`` reproduces the hashes of earlier desktop releases: the salt is
  ``str(user_id + 32)`` appended to the password, hashed with MD5 and
  rendered as lowercase hex. The salt is derived from the user id, so it
  is kept for compatibility with existing databases only.
* ``bcrypt`` uses a random per-credential salt embedded in the hash.

``verify`` on either hasher accepts both stored formats, so a database
can hold a mix of legacy and bcrypt hashes.
"""
import hashlib
import hmac
import re

import bcrypt

from utils.constants import BCRYPT_MAX_PASSWORD_BYTES, LEGACY_SALT_OFFSET
from utils.exceptions import ValidationError

_LEGACY_HASH_RE = re.compile(r"^[0-9a-f]{32}$")


def legacy_salt(user_id: int) -> str:
    return str(user_id + LEGACY_SALT_OFFSET)


def legacy_hash(password: str, user_id: int) -> str:
    salted = password + legacy_salt(user_id)
    return hashlib.md5(salted.encode("utf-8")).hexdigest()


def is_legacy_hash(stored: str) -> bool:
    return bool(_LEGACY_HASH_RE.match(stored or ""))


def _verify_any(password: str, stored: str, user_id: int) -> bool:
    if not stored:
        return False
    if is_legacy_hash(stored):
        return hmac.compare_digest(legacy_hash(password, user_id), stored)
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        # Malformed hash or over-long password.
        return False


class LegacyMd5Hasher:
    scheme = "legacy-md5"

    def hash(self, password: str, user_id: int) -> str:
        return legacy_hash(password, user_id)

    def verify(self, password: str, stored: str, user_id: int) -> bool:
        return _verify_any(password, stored, user_id)

    def needs_rehash(self, stored: str) -> bool:
        return False


class BcryptHasher:
    scheme = "bcrypt"

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str, user_id: int) -> str:
        raw = password.encode("utf-8")
        if len(raw) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes."
            )
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, stored: str, user_id: int) -> bool:
        return _verify_any(password, stored, user_id)

    def needs_rehash(self, stored: str) -> bool:
        return is_legacy_hash(stored)


def get_hasher(scheme: str, **kwargs):
    if scheme == LegacyMd5Hasher.scheme:
        return LegacyMd5Hasher()
    if scheme == BcryptHasher.scheme:
        return BcryptHasher(**kwargs)
    raise ValueError(f"Unknown hash scheme: {scheme}")
