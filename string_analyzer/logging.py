"""Console logging for the service, plus per-request and per-query timing."""
import logging
import time
from logging.config import dictConfig
from typing import Any, Dict

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from starlette.middleware.base import BaseHTTPMiddleware

from string_analyzer.config import Settings

REQUEST_LOGGER = "string_analyzer.request"
DB_LOGGER = "string_analyzer.db"

LOG_FORMAT = "%(log_color)s[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def _console_logger(level: str) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def _at_most_warning(level: str) -> str:
    return level if logging.getLevelName(level) <= logging.WARNING else "WARNING"


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    app_level = settings.log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": "colorlog.ColoredFormatter",
                "format": LOG_FORMAT,
                "log_colors": LOG_COLORS,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": settings.console_log_level.upper(),
            },
        },
        "loggers": {
            # RequestLoggingMiddleware already writes one line per request
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": _console_logger("WARNING"),
            "string_analyzer": _console_logger(app_level),
            "string_analyzer.services": _console_logger(app_level),
            # 429s and store retries log at WARNING and must not be filtered out
            "string_analyzer.limiter": _console_logger(_at_most_warning(app_level)),
            DB_LOGGER: _console_logger("DEBUG" if settings.debug else _at_most_warning(app_level)),
            REQUEST_LOGGER: _console_logger("INFO"),
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def init_logging(settings: Settings) -> None:
    dictConfig(build_logging_config(settings))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One line per request: method, path, status and wall time. 5xx lines log at ERROR."""

    async def dispatch(self, request: Request, call_next):
        logger = logging.getLogger(REQUEST_LOGGER)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.error("%s %s failed after %.2f ms", request.method, request.url.path, elapsed_ms)
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


SLOW_QUERY_THRESHOLD_MS = 200


def setup_query_logging(engine: Engine, slow_query_ms: float = SLOW_QUERY_THRESHOLD_MS) -> None:
    """Time every cursor execution on ``engine``.

    Async engines must pass ``async_engine.sync_engine``. Statements taking at
    least ``slow_query_ms`` are logged as warnings, everything else at DEBUG.
    """
    logger = logging.getLogger(DB_LOGGER)

    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def _log_elapsed(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (time.perf_counter() - conn.info["query_start_time"].pop()) * 1000
        if elapsed_ms >= slow_query_ms:
            logger.warning("Slow query (%.2f ms): %s", elapsed_ms, statement)
        else:
            logger.debug("Query (%.2f ms): %s", elapsed_ms, statement)
