"""
auth/passwords.py -- Password hashing and credential verification.

Security design decisions:
  bcrypt used directly (no passlib wrapper). Every digest embeds its own salt
  and cost factor, so hash_password() is non-deterministic across calls and
  verify_password() needs nothing but the digest. The default cost factor is
  10 rounds, tunable via BCRYPT_ROUNDS.

  verify_password() never raises. A malformed or empty digest is simply a
  failed verification.

  authenticate() always runs exactly one bcrypt check, against _DUMMY_HASH when
  the username is unknown, so response time does not reveal whether a username
  exists. The two failure cases still raise distinct errors; callers decide
  what the client sees.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from auth.exceptions import IncorrectPasswordError, PasswordTooLongError, UserNotFoundError
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("authgate.auth")

# bcrypt only accepts the first 72 bytes of input; bcrypt 5 rejects anything longer.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt digest of the given plaintext password.

    Raises PasswordTooLongError when the UTF-8 encoding exceeds
    MAX_PASSWORD_BYTES. The limit counts bytes, not characters.
    """
    if not plain:
        raise ValueError("Password must not be empty")
    if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError(MAX_PASSWORD_BYTES)
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt digest."""
    if not plain or not hashed:
        return False
    if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at module load so the first unknown-user login is not
# measurably slower than later ones.
_DUMMY_HASH: str = hash_password("authgate_timing_dummy")


def authenticate(store: UserStore, username: str, password: str) -> User:
    """Return the stored User if the credentials match.

    Raises UserNotFoundError when no such username exists and
    IncorrectPasswordError when the password does not match the digest.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        logger.warning("Login failed: unknown user")
        raise UserNotFoundError(username)
    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: bad password for user_id=%s", user.id)
        raise IncorrectPasswordError()
    return user
