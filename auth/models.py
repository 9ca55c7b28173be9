"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only own the shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered credential holder, as persisted by the credential store.

    password_hash is the bcrypt digest. The plaintext is never stored. Records
    are created on registration and never mutated afterwards.
    """

    username: str
    email: str
    password_hash: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class SessionUser:
    """The identity carried by a live session.

    Deliberately omits the password digest: a session only needs to answer
    "who is this", and anything stored here may end up in a shared cache.
    """

    id: int
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> SessionUser:
        if user.id is None:
            raise ValueError("Cannot open a session for an unsaved user")
        return cls(id=user.id, username=user.username, email=user.email)


@dataclass(frozen=True)
class Session:
    """Server-side record binding an opaque session id to an identity.

    expires_at is a clock reading (seconds) after which the session is dead.
    """

    session_id: str
    user: SessionUser
    expires_at: float
