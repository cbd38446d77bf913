import logging
from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from string_analyzer.config import Settings
from string_analyzer.models import Base

logger = logging.getLogger("string_analyzer.db")

# ---------------------------------------------------------------------------
# Engine Setup
# ---------------------------------------------------------------------------


def _detect_driver(url: str) -> str:
    try:
        return make_url(url).drivername
    except Exception:
        return url.split(":", 1)[0]


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the async engine; pool sizing only applies to drivers that pool (Postgres)."""
    url = str(settings.database_url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    driver = _detect_driver(url)
    engine_kwargs: Dict[str, Any] = {
        "echo": settings.db_echo,
        "pool_pre_ping": True,
    }
    if driver.startswith("postgresql+"):
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow

    return create_async_engine(url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, expire_on_commit=False)


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def get_database_dsn(engine: AsyncEngine, hide_password: bool = True) -> str:
    """Return the engine's DSN with the password masked."""
    return engine.url.render_as_string(hide_password=hide_password)


async def init_db(engine: AsyncEngine) -> None:
    """Create missing tables. Alembic owns schema changes beyond the initial create."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully.")
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        raise RuntimeError("Failed to initialize database") from e


async def shutdown_db(engine: AsyncEngine) -> None:
    """Dispose the async engine cleanly."""
    try:
        await engine.dispose()
        logger.info("Database connection pool closed.")
    except Exception as e:
        logger.error("Error shutting down database engine: %s", e)
        raise
