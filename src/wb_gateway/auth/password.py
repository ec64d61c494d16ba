"""Password hashing utilities using bcrypt.

Uses the ``bcrypt`` library directly (>=4.0).  passlib[bcrypt] is intentionally
avoided because passlib is unmaintained and incompatible with bcrypt >=4.

A stored password is one of two variants, selected by ``users.password_scheme``:

  HashedPassword            bcrypt hash (every account created by this service)
  LegacyPlaintextPassword   rows imported from the pre-hashing user table

A successful login against a legacy row re-hashes it (see UserService.login),
so the plaintext variant only ever shrinks.
"""

import hmac
from dataclasses import dataclass

import bcrypt

from src.wb_common.enums import PasswordScheme


@dataclass(frozen=True)
class HashedPassword:
    value: str


@dataclass(frozen=True)
class LegacyPlaintextPassword:
    value: str


StoredPassword = HashedPassword | LegacyPlaintextPassword


def hash_password(plain: str) -> str:
    """Hash a plain-text password with bcrypt. Returns a utf-8 hash string."""
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def load_stored_password(scheme: str, value: str) -> StoredPassword:
    """Build the tagged variant from the two columns persisted on users."""
    if scheme == PasswordScheme.PLAINTEXT:
        return LegacyPlaintextPassword(value)
    return HashedPassword(value)


def check_password(plain: str, stored: StoredPassword) -> bool:
    if isinstance(stored, LegacyPlaintextPassword):
        return hmac.compare_digest(plain.encode("utf-8"), stored.value.encode("utf-8"))
    return verify_password(plain, stored.value)


def needs_migration(stored: StoredPassword) -> bool:
    return isinstance(stored, LegacyPlaintextPassword)
