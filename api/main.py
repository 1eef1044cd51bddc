"""
api/main.py -- FastAPI application entry point for the SmartBee API.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for the configured front-end origins
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter
  3. log_requests       -- one log line per request with status and latency

Lifespan owns the process-wide database engine: created and schema-checked
on startup, injected into the stores, disposed on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.errors import render_service_error
from api.limiter import limiter
from api.models import ConnectionTestResponse, ErrorDetail, ErrorResponse, HealthResponse
from api.routes.accounts import router as accounts_router
from api.routes.auth import router as auth_router
from api.routes.hives import router as hives_router
from api.routes.roles import router as roles_router
from apiary.store import HiveStore
from auth.accounts import AccountManager
from auth.store import AccountStore
from core.config import get_settings
from core.database import check_connection, create_db_engine, init_schema
from core.errors import ServiceError, StorageError

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("smartbee.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the engine and stores on startup; dispose the pool on shutdown.

    Stores share the one engine so the pool size bounds total connections.
    """
    logger.info("SmartBee API starting up")
    engine = create_db_engine(
        _settings.database_url,
        pool_size=_settings.db_pool_size,
        pool_timeout=_settings.db_pool_timeout,
    )
    init_schema(engine)
    app.state.engine = engine
    app.state.account_store = AccountStore(engine)
    app.state.account_manager = AccountManager(app.state.account_store)
    app.state.hive_store = HiveStore(engine)
    logger.info("Database initialized (%s)", engine.url.render_as_string(hide_password=True))

    yield

    engine.dispose()
    logger.info("Connection pool closed; SmartBee API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SmartBee API",
    description="Accounts, hives and sensor telemetry for apiary monitoring.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# slowapi reads the limiter from app.state.
app.state.limiter = limiter


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
app.include_router(accounts_router, prefix="/api", tags=["Accounts"])
app.include_router(roles_router, prefix="/api", tags=["Roles"])
app.include_router(hives_router, prefix="/api", tags=["Hives"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler answers with the {"error": {code, message, detail}} envelope;
# the front end reads error.code, never the body shape.
# ---------------------------------------------------------------------------


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render domain and storage errors with the status their class declares."""
    if isinstance(exc, StorageError):
        logger.error(
            "Storage failure on %s %s: message=%r code=%s origin=%s",
            request.method,
            request.url.path,
            exc.message,
            exc.db_code,
            exc.origin,
        )
    return render_service_error(exc)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc.detail),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are a 400, same as missing fields -- clients only check the status."""
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=", ".join(f for f in fields if f) or None,
            )
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 on unknown paths, 405...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoints
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Liveness plus a database probe. Always 200; a dead database reports "degraded"."""
    try:
        check_connection(request.app.state.engine)
        database = "ok"
    except StorageError:
        database = "error"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": database},
    )


@app.get("/api/test-connection", tags=["Health"])
def test_connection(request: Request) -> ConnectionTestResponse:
    """Run SELECT 1 against the database. StorageError propagates as a 500."""
    result = check_connection(request.app.state.engine)
    return ConnectionTestResponse(success=True, result=result, message="Connection OK")
