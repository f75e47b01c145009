"""
api/main.py -- FastAPI application entry point for TaskPro auth.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware  -- adds CORS headers for allowed browser origins
  2. log_requests    -- one log line per request with status and latency

Lifespan reads Settings once and wires the collaborators explicitly:
UserStore -> SessionTokenIssuer -> Notifier -> AvatarStorage -> SessionAuthority.
Nothing below the lifespan reads configuration on its own.

Error boundary: every SessionError raised by auth/ is turned into the same
ErrorResponse envelope here, with the status code the error carries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.profile import router as profile_router
from auth.avatars import AvatarStorage
from auth.errors import SessionError
from auth.session import SessionAuthority
from auth.store import UserStore
from auth.tokens import SessionTokenIssuer
from core.config import get_settings
from notify.mailer import build_notifier

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskpro.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the session authority on startup and release the DB on shutdown."""
    settings = get_settings()
    logger.info("TaskPro auth API starting up")
    store = UserStore(settings.database_url)
    app.state.avatars = AvatarStorage(settings.avatar_dir, settings.avatar_url_prefix)
    app.state.authority = SessionAuthority(
        store=store,
        issuer=SessionTokenIssuer.from_settings(settings),
        notifier=build_notifier(settings),
        avatars=app.state.avatars,
        confirmation_base_url=settings.confirmation_base_url,
        help_desk_email=settings.help_desk_email,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    logger.info("Session authority initialized")

    yield

    store.close()
    logger.info("TaskPro auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TaskPro Auth API",
    description="Registration, login, and access/refresh session tokens for TaskPro.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(profile_router, prefix="/api/v1", tags=["Profile"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(SessionError)
async def session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
    """Map typed auth failures (409/401/403/500) to the error envelope."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or form fields fail validation."""
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Avatars
# ---------------------------------------------------------------------------


@app.get("/avatars/{filename}", include_in_schema=False)
async def avatar(request: Request, filename: str) -> FileResponse:
    """Serve a stored avatar. Only bare file names inside the avatar directory resolve."""
    storage: AvatarStorage = request.app.state.avatars
    if Path(filename).name != filename:
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Avatar not found."})
    path = storage.root / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Avatar not found."})
    return FileResponse(path)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    authority: SessionAuthority = request.app.state.authority
    try:
        database = "ok" if authority.store.ping() else "error"
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
