"""
auth/sessions.py -- Server-side session store and session cookie helpers.

The session store is the authority for "is this caller logged in, and as
whom". Routes and the access guard only talk to the SessionStore protocol,
so the in-memory implementation can be swapped for an external store
(Redis, memcached) without touching route logic. The concrete store lives on
app.state.session_store and is wired up in the app lifespan.

Expiry:
  Every session gets a fixed TTL from creation. get() evicts lazily -- an
  expired entry is deleted and reported as absent. purge_expired() evicts
  eagerly and is called periodically by a background task in api/main.py.

Concurrency:
  Sync route handlers run in Starlette's worker thread pool, so the store is
  shared across threads. A single lock guards the dict; every operation is
  O(1) under the lock.

Cookie:
  The cookie carries the session id signed with SESSION_SECRET
  (itsdangerous TimestampSigner). A tampered or foreign cookie fails
  signature verification before the store is ever consulted.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Callable
from typing import Protocol

from itsdangerous import BadSignature, SignatureExpired, TimestampSigner

from auth.models import Session, SessionUser, User
from core.config import get_settings

logger = logging.getLogger("authgate.auth")

_SIGNER_SALT = "authgate.session.v1"


class SessionStore(Protocol):
    """What routes and the access guard need from a session backend."""

    def create(self, user: User) -> str: ...

    def get(self, session_id: str) -> SessionUser | None: ...

    def destroy(self, session_id: str) -> None: ...

    def purge_expired(self) -> int: ...


class InMemorySessionStore:
    """Process-local SessionStore backed by a dict.

    Usage:
        store = InMemorySessionStore(ttl_seconds=3600)
        sid = store.create(user)
        store.get(sid)        # SessionUser, or None once expired
        store.destroy(sid)
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], float] = time.time) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, user: User) -> str:
        """Open a session for user and return its opaque id.

        Only the public profile is stored; the password digest stays in the
        credential store.
        """
        session_user = SessionUser.from_user(user)
        session_id = secrets.token_urlsafe(32)
        session = Session(
            session_id=session_id,
            user=session_user,
            expires_at=self._clock() + self.ttl,
        )
        with self._lock:
            self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> SessionUser | None:
        """Return the session's user if it exists and has not expired."""
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._clock() >= session.expires_at:
                del self._sessions[session_id]
                return None
            return session.user

    def destroy(self, session_id: str) -> None:
        """Remove the session. Unknown or already-destroyed ids are ignored."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        """Delete every expired session. Returns number of sessions removed."""
        now = self._clock()
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now >= s.expires_at]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# ---------------------------------------------------------------------------
# Cookie signing
# ---------------------------------------------------------------------------


def _signer() -> TimestampSigner:
    return TimestampSigner(get_settings().session_secret, salt=_SIGNER_SALT)


def sign_session_id(session_id: str) -> str:
    return _signer().sign(session_id).decode("utf-8")


def unsign_session_id(cookie_value: str) -> str | None:
    """Return the session id inside a signed cookie value, or None.

    None covers a missing value, a bad signature, and a signature older than
    the session TTL.
    """
    if not cookie_value:
        return None
    try:
        raw = _signer().unsign(cookie_value, max_age=get_settings().session_ttl_seconds)
    except SignatureExpired:
        logger.info("Rejected expired session cookie")
        return None
    except BadSignature:
        logger.warning("Rejected session cookie with bad signature")
        return None
    return raw.decode("utf-8")


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, session_id: str) -> None:
    """Write the signed session id as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POSTs.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the session TTL so both expire together.
    """
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        value=sign_session_id(session_id),
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.session_ttl_seconds,
    )


def clear_session_cookie(response) -> None:
    settings = get_settings()
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
