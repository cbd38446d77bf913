import logging

import pytest
from sqlalchemy import text

from string_analyzer.config import Settings
from string_analyzer.logging import DB_LOGGER, REQUEST_LOGGER, build_logging_config, setup_query_logging


@pytest.fixture()
def capture(caplog):
    """Attach caplog to a non-propagating service logger."""
    attached = []

    def _capture(name: str, level: int = logging.DEBUG):
        logger = logging.getLogger(name)
        attached.append((logger, logger.level))
        logger.addHandler(caplog.handler)
        logger.setLevel(level)
        return caplog

    yield _capture
    for logger, level in attached:
        logger.removeHandler(caplog.handler)
        logger.setLevel(level)


def test_config_uses_colorlog_and_service_loggers():
    config = build_logging_config(Settings(LOG_LEVEL="info"))
    assert config["formatters"]["console"]["()"] == "colorlog.ColoredFormatter"
    loggers = config["loggers"]
    for name in ("string_analyzer", "string_analyzer.services", "string_analyzer.limiter", DB_LOGGER, REQUEST_LOGGER):
        assert loggers[name]["handlers"] == ["console"]
        assert loggers[name]["propagate"] is False
    assert loggers["string_analyzer"]["level"] == "INFO"
    assert loggers[DB_LOGGER]["level"] == "INFO"


def test_retry_and_limiter_loggers_never_drop_below_warning():
    loggers = build_logging_config(Settings(LOG_LEVEL="ERROR"))["loggers"]
    assert loggers["string_analyzer"]["level"] == "ERROR"
    assert loggers[DB_LOGGER]["level"] == "WARNING"
    assert loggers["string_analyzer.limiter"]["level"] == "WARNING"


def test_debug_enables_query_timings():
    loggers = build_logging_config(Settings(DEBUG=True))["loggers"]
    assert loggers[DB_LOGGER]["level"] == "DEBUG"


def test_request_line_is_logged(client, capture):
    caplog = capture(REQUEST_LOGGER)
    client.get("/health")
    assert any("GET /health -> 200" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_queries_over_the_threshold_warn(engine, capture):
    caplog = capture(DB_LOGGER)
    setup_query_logging(engine.sync_engine, slow_query_ms=0)
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    slow = [r for r in caplog.records if r.getMessage().startswith("Slow query")]
    assert slow
    assert slow[0].levelno == logging.WARNING
    assert "SELECT 1" in slow[0].getMessage()
