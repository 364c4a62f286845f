"""
api/main.py -- FastAPI application entry point for the Content API.

Run with:  python main.py --port 1323
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the site's browser origins
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter

Lifespan builds every long-lived resource from Settings once -- the shared
record store engine, the stores on top of it, the token issuer holding the
signing key, the directory client -- and hangs them on app.state. Routes read
them from request.app.state; nothing else reaches for module-level singletons.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.categories import router as categories_router
from api.routes.posts import router as posts_router
from api.routes.sponsors import router as sponsors_router
from auth.directory import DirectoryClient
from auth.login import LoginService
from auth.store import SessionStore
from auth.tokens import TokenIssuer
from content.store import ContentStore
from core.config import get_settings
from core.db import make_engine
from core.errors import ContentAPIError

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("contentapi.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared resources on startup and release them on shutdown.

    Startup order matters: the engine first, then the stores that create
    their tables on it, then the login service that depends on the session
    store, the token issuer and the directory client.
    """
    settings = get_settings()
    logger.info("Content API starting up")

    app.state.engine = make_engine(settings.database_url)
    app.state.content = ContentStore(app.state.engine)
    app.state.sessions = SessionStore(app.state.engine)
    logger.info("Record store initialized")

    app.state.token_issuer = TokenIssuer(settings.secret_key, timedelta(seconds=settings.token_ttl_seconds))
    app.state.directory = DirectoryClient(
        settings.ldap_server_uri,
        settings.ldap_domain,
        settings.ldap_base_dn,
        timeout=settings.ldap_timeout_seconds,
    )
    app.state.login_service = LoginService(
        app.state.directory,
        app.state.token_issuer,
        app.state.sessions,
        name_attribute=settings.ldap_name_attribute,
        default_role=settings.default_role,
    )
    app.state.max_list_limit = settings.max_list_limit
    logger.info("Auth initialized (directory=%s)", settings.ldap_server_uri)

    yield

    app.state.engine.dispose()
    logger.info("Content API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Content API",
    description="Posts, categories and sponsors for the society website, with directory login.",
    version=_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


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
#
# The public paths (/login/, /post/{id}/, ...) are unprefixed; the site's
# frontend calls them at the root.
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(posts_router, tags=["Posts"])
app.include_router(categories_router, tags=["Categories"])
app.include_router(sponsors_router, tags=["Sponsors"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly. A failing request only ever fails itself.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(ContentAPIError)
async def content_api_error_handler(request: Request, exc: ContentAPIError) -> JSONResponse:
    """Render a domain error with the status and code its class declares."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.code, exc.message, exc.detail)


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded.

    Plain def: SlowAPIMiddleware calls this handler synchronously for sync
    endpoints such as POST /login/, so it must not be a coroutine.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when a path, query or form field fails validation (e.g. a non-numeric ID)."""
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths (404) and wrong methods (405) get the same envelope."""
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=_VERSION)
