"""
api/main.py -- FastAPI application entry point for authgate.

Exposes registration, login, logout and user listing over HTTP, with
server-side sessions carried by a signed, httpOnly cookie.

Run with:      python main.py
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests      -- one access-log line per request, including 401s
  2. security_headers  -- nosniff / frame / referrer / COOP / CORP (+ HSTS)
  3. InterceptorChain  -- AccessGuard; rejects unauthenticated requests to
                          non-public paths before any route handler runs

Lifespan handles startup (credential store, session store, purge task) and
shutdown (cancel purge task, dispose DB engine) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, HealthResponse, MessageResponse
from api.routes.auth import router as auth_router
from auth.guard import AccessGuard, InterceptorChain
from auth.sessions import InMemorySessionStore
from auth.store import UserStore
from core.config import get_settings

API_VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authgate.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI, interval: int) -> None:
    """Evict expired sessions every `interval` seconds.

    get() already refuses expired sessions; this keeps abandoned ones from
    accumulating in memory. CancelledError from task.cancel() during shutdown
    propagates out of asyncio.sleep and unwinds the coroutine.
    """
    while True:
        await asyncio.sleep(interval)
        removed = app.state.session_store.purge_expired()
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared stores on startup and release them on shutdown.

    Both stores live on app.state so routes and the guard reach them through
    the request, and tests can wire in their own.
    """
    logger.info("authgate API starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.session_store = InMemorySessionStore(ttl_seconds=_settings.session_ttl_seconds)
    logger.info(
        "Stores initialized (session_ttl=%ss, secure_cookies=%s)",
        _settings.session_ttl_seconds,
        _settings.secure_cookies,
    )
    app.state.purge_task = asyncio.create_task(_purge_loop(app, _settings.session_purge_interval_seconds))

    yield

    app.state.purge_task.cancel()
    app.state.user_store.close()
    logger.info("authgate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="authgate",
    description="Registration, login and session-gated access to protected resources.",
    version=API_VERSION,
    lifespan=lifespan,
    # The schema and docs would sit outside the public allow-list anyway.
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Each @app.middleware("http") registration wraps everything registered
# before it, so the LAST one registered sees the request FIRST. Register
# innermost first: interceptor chain -> security headers -> request log.
# ---------------------------------------------------------------------------

interceptors = InterceptorChain([AccessGuard()])
app.middleware("http")(interceptors)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
    if _settings.secure_cookies:
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body is {"error": "<message>"} so clients parse one shape.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or wrongly typed fields are a client error: 400."""
    logger.info("Rejected invalid body on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid request body.").model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only. The client receives a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="An unexpected error occurred.").model_dump(),
    )


# ---------------------------------------------------------------------------
# Home and health
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state. Both are on the public allow-list.
# ---------------------------------------------------------------------------


@app.get("/", tags=["Home"])
async def home() -> MessageResponse:
    return MessageResponse(message="[GET] /home")


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the credential store answers."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
