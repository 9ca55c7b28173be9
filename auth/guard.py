"""
auth/guard.py -- Access control for incoming requests.

Two ways to protect a route, both backed by resolve_session():

  1. AccessGuard -- a global interceptor. Runs before every route handler via
     the InterceptorChain middleware. Paths on the public allow-list pass
     through; everything else needs a live session or gets a 401 before the
     handler is ever invoked.

  2. must_be_authed() -- a FastAPI dependency applied per route at
     registration time. Same check, same 401. Reuses request.state.user when
     the global guard has already resolved the session.

On success both attach the resolved SessionUser to request.state.user.

Interceptor chain:
  An interceptor is an async callable taking the Request and returning either
  a Response (short-circuit: the chain stops and that response is sent) or
  None (continue). InterceptorChain runs them in registration order, then
  hands the request to the route. Order is explicit at the call site in
  api/main.py rather than implied by decorator placement.

Layer rule: auth/guard.py may import from fastapi/starlette because it is part
of the request pipeline. No imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from auth.models import SessionUser
from auth.sessions import SessionStore, unsign_session_id
from core.config import get_settings

logger = logging.getLogger("authgate.auth")

UNAUTHORIZED_MESSAGE = "You shall not pass!"

PUBLIC_PATHS: frozenset[str] = frozenset(
    {
        "/",
        "/api/register",
        "/api/login",
        "/api/logout",
        "/api/health",
    }
)

Interceptor = Callable[[Request], Awaitable[Response | None]]


def resolve_session(request: Request) -> SessionUser | None:
    """Resolve the request's session cookie to a user.

    Returns None for a missing cookie, a bad signature, or an unknown or
    expired session id. Never raises.
    """
    session_id = current_session_id(request)
    if session_id is None:
        return None
    store: SessionStore = request.app.state.session_store
    return store.get(session_id)


def current_session_id(request: Request) -> str | None:
    """Return the verified session id carried by the request, if any."""
    cookie = request.cookies.get(get_settings().session_cookie_name, "")
    return unsign_session_id(cookie)


def _unauthorized() -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": UNAUTHORIZED_MESSAGE})


class AccessGuard:
    """Allow-list interceptor: public paths pass, the rest need a session."""

    def __init__(self, public_paths: Iterable[str] = PUBLIC_PATHS) -> None:
        self.public_paths = frozenset(_normalize(p) for p in public_paths)

    def is_public(self, path: str) -> bool:
        return _normalize(path) in self.public_paths

    async def __call__(self, request: Request) -> Response | None:
        if self.is_public(request.url.path):
            return None
        user = resolve_session(request)
        if user is None:
            logger.info("Blocked unauthenticated %s %s", request.method, request.url.path)
            return _unauthorized()
        request.state.user = user
        return None


class InterceptorChain:
    """Ordered request interceptors, installed as a single HTTP middleware.

    Usage:
        chain = InterceptorChain([AccessGuard()])
        app.middleware("http")(chain)
    """

    def __init__(self, interceptors: Iterable[Interceptor] = ()) -> None:
        self._interceptors: list[Interceptor] = list(interceptors)

    def add(self, interceptor: Interceptor) -> None:
        self._interceptors.append(interceptor)

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        return tuple(self._interceptors)

    async def __call__(self, request: Request, call_next):
        for interceptor in self._interceptors:
            response = await interceptor(request)
            if response is not None:
                return response
        return await call_next(request)


def must_be_authed(request: Request) -> SessionUser:
    """Require a live session. Raises HTTP 401 if there is none.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: SessionUser = Depends(must_be_authed)): ...
    """
    user = getattr(request.state, "user", None)
    if user is None:
        user = resolve_session(request)
    if user is None:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_MESSAGE)
    request.state.user = user
    return user


def _normalize(path: str) -> str:
    return path.rstrip("/") or "/"
