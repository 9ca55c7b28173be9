"""
api/routes/auth.py -- Registration, login, logout and user listing endpoints.

Routes (mounted under /api):
  POST /api/register           -- create a user; 400 on missing fields
  POST /api/login              -- verify credentials; opens a session and sets the cookie
  GET  /api/logout             -- destroy the session (if any) and clear the cookie
  GET  /api/users              -- list users (must_be_authed, plus the global guard)
  GET  /api/restricted/users   -- list users (global guard only)

Each handler is orchestration only: password work lives in auth/passwords.py,
persistence in auth/store.py, session state in auth/sessions.py.

Handlers that touch bcrypt or the database are plain `def` so Starlette runs
them in its worker thread pool and the event loop never blocks on them.

Error contract:
  400 {"message": ...}  missing required field, or password over 72 bytes
  401 {"error": ...}    unknown user / wrong password / no session
  409 {"error": ...}    username already registered
  5xx                    anything else, via the generic handler in api/main.py
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, MessageResponse, RegisterRequest, UserResponse
from auth.exceptions import DuplicateUserError, IncorrectPasswordError, PasswordTooLongError, UserNotFoundError
from auth.guard import current_session_id, must_be_authed
from auth.models import SessionUser, User
from auth.passwords import authenticate, hash_password
from auth.sessions import SessionStore, clear_session_cookie, set_session_cookie
from auth.store import UserStore

logger = logging.getLogger("authgate.api")

# Auth policy:
# - POST /api/register:          public (allow-list)
# - POST /api/login:             public (allow-list)
# - GET  /api/logout:            public -- succeeds with or without a session
# - GET  /api/users:             must_be_authed + global guard
# - GET  /api/restricted/users:  global guard only
router = APIRouter()


def _no_store(resp: JSONResponse) -> JSONResponse:
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=UserResponse)
def register(request: Request, body: Optional[RegisterRequest] = None) -> JSONResponse:
    """Create a user from username, email and password.

    The password is hashed before it reaches the store. The created record is
    returned as stored, digest included.
    """
    if body is None or not body.is_complete():
        return JSONResponse(
            status_code=400,
            content=MessageResponse(message="Please enter username, email and password.").model_dump(),
        )

    try:
        password_hash = hash_password(body.password)
    except PasswordTooLongError as exc:
        return JSONResponse(status_code=400, content=MessageResponse(message=str(exc)).model_dump())

    user_store: UserStore = request.app.state.user_store
    new_user = User(username=body.username, email=body.email, password_hash=password_hash)
    try:
        user_id = user_store.create_user(new_user)
    except DuplicateUserError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    created = user_store.get_by_id(user_id)
    if created is None:
        raise RuntimeError(f"User {user_id} not found after insert")
    logger.info("Registered user_id=%s", user_id)
    return JSONResponse(status_code=200, content=UserResponse.from_user(created).model_dump())


@router.post("/login", response_model=MessageResponse)
def login(request: Request, body: Optional[LoginRequest] = None) -> JSONResponse:
    """Verify credentials and open a session.

    The two failure messages differ on purpose: an unknown username and a
    wrong password are reported separately. authenticate() still runs bcrypt
    in both cases so timing does not add a second oracle.

    A session already carried by the request is destroyed before the new one
    is issued, so a pre-set cookie cannot be promoted to an authenticated one.
    """
    if body is None or not body.is_complete():
        return _no_store(
            JSONResponse(
                status_code=400,
                content=MessageResponse(message="Please enter username and password.").model_dump(),
            )
        )

    user_store: UserStore = request.app.state.user_store
    session_store: SessionStore = request.app.state.session_store
    try:
        user = authenticate(user_store, body.username, body.password)
    except (UserNotFoundError, IncorrectPasswordError) as exc:
        return _no_store(JSONResponse(status_code=401, content={"error": str(exc)}))

    previous = current_session_id(request)
    if previous is not None:
        session_store.destroy(previous)
    session_id = session_store.create(user)
    logger.info("Login succeeded for user_id=%s", user.id)

    resp = JSONResponse(
        status_code=200,
        content=MessageResponse(message=f"Welcome back {user.username} :)").model_dump(),
    )
    set_session_cookie(resp, session_id)
    return _no_store(resp)


@router.get("/logout", response_model=MessageResponse)
async def logout(request: Request) -> JSONResponse:
    """Destroy the caller's session, if any, and clear the cookie."""
    session_store: SessionStore = request.app.state.session_store
    session_id = current_session_id(request)
    if session_id is not None:
        session_store.destroy(session_id)
        logger.info("Session closed")
    resp = JSONResponse(content=MessageResponse(message="User was logged out.").model_dump())
    clear_session_cookie(resp)
    return _no_store(resp)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse])
def list_users(
    request: Request,
    current_user: SessionUser = Depends(must_be_authed),
) -> list[UserResponse]:
    """List every registered user in registration order."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.get("/restricted/users", response_model=list[UserResponse])
def list_users_restricted(request: Request) -> list[UserResponse]:
    """Same listing as /api/users, protected only by the global access guard."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]
