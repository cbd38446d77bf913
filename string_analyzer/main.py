import logging
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from string_analyzer import database
from string_analyzer import limiter as limiter_module
from string_analyzer.config import get_settings
from string_analyzer.crud import StringStore
from string_analyzer.errors import StringAnalyzerError
from string_analyzer.logging import RequestLoggingMiddleware, init_logging, setup_query_logging
from string_analyzer.routes import router

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
init_logging(get_settings())
logger = logging.getLogger("string_analyzer")


# ---------------------------------------------------------------------------
# App lifespan (startup/shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the engine for the life of the process and hand handlers a store built on it."""
    settings = get_settings()
    engine = database.create_engine_from_settings(settings)
    setup_query_logging(engine.sync_engine, slow_query_ms=settings.slow_query_ms)
    try:
        await database.init_db(engine)
        logger.info("Connected to database: %s", database.get_database_dsn(engine))
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        await engine.dispose()
        raise

    app.state.store = StringStore(
        database.create_session_factory(engine),
        max_retries=settings.db_max_retries,
        base_delay=settings.db_retry_base_delay,
    )

    yield

    logger.info("Shutdown: closing database connection pool...")
    try:
        await database.shutdown_db(engine)
    except Exception as e:
        logger.error("Error during shutdown cleanup: %s", e)


# ---------------------------------------------------------------------------
# FastAPI Application
# ---------------------------------------------------------------------------
app = FastAPI(
    title="String Analyzer Service",
    version="1.0.0",
    description=(
        "Analyzes strings and stores their computed properties.\n\n"
        "Features:\n"
        "- Length, palindrome check, unique characters, word count, SHA-256, character frequencies\n"
        "- Filtering by properties or by a natural language query\n"
        "- Lookup and deletion by the raw string value"
    ),
    lifespan=lifespan,
)
app.state.limiter = limiter_module.create_limiter()
app.add_exception_handler(RateLimitExceeded, cast(Any, limiter_module.rate_limit_exceeded_handler))

app.add_middleware(cast(Any, limiter_module.get_middleware()))
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


# -------------------------------
# Unified error response handlers
# -------------------------------
@app.exception_handler(StringAnalyzerError)
async def string_analyzer_error_handler(request: Request, exc: StringAnalyzerError):
    logger.warning(
        "%s: %s %s -> %s | %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        "HTTPException: %s %s -> %s | detail=%s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.detail,
    )
    body = {"error": exc.detail if isinstance(exc.detail, str) else "Error"}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


def _jsonable_errors(exc: RequestValidationError) -> list:
    # Error contexts may carry exception instances that JSON cannot encode.
    return [{k: v for k, v in err.items() if k in ("type", "loc", "msg")} for err in exc.errors()]


def _validation_status(request: Request, exc: RequestValidationError) -> int:
    path = request.url.path
    if request.method == "POST" and path.rstrip("/").endswith("/strings"):
        # Missing field or unreadable JSON -> 400, wrong type -> 422
        errors = exc.errors()
        missing = any(err.get("type") in {"missing", "json_invalid"} for err in errors)
        return 400 if missing else 422
    return 400


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    status = _validation_status(request, exc)
    logger.warning(
        "ValidationError: %s %s -> %s | errors=%s",
        request.method,
        request.url.path,
        status,
        exc.errors(),
    )
    if status == 422:
        message = 'Invalid data type for "value" (must be string)'
    else:
        message = "Validation failed"
    return JSONResponse(
        status_code=status,
        content={"error": message, "details": _jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s %s", request.method, request.url.path)
    body = {"error": "Internal server error"}
    if get_settings().is_development:
        body["details"] = str(exc)
    return JSONResponse(status_code=500, content=body)
