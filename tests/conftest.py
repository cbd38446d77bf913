import os
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Settings are read once; pin the test environment before anything imports the app.
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_RETRY_BASE_DELAY"] = "0"
os.environ["ENV"] = "development"

from string_analyzer import database  # noqa: E402
from string_analyzer.config import Settings, get_settings  # noqa: E402
from string_analyzer.crud import StringStore  # noqa: E402


def _sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    """The FastAPI app pointed at a fresh SQLite file for this test."""
    monkeypatch.setenv("DATABASE_URL", _sqlite_url(tmp_path / "test.db"))
    get_settings.cache_clear()
    from string_analyzer.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


class StepClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest_asyncio.fixture
async def engine(tmp_path):
    settings = Settings(DATABASE_URL=_sqlite_url(tmp_path / "store.db"))
    eng = database.create_engine_from_settings(settings)
    await database.init_db(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def store(engine):
    return StringStore(
        database.create_session_factory(engine),
        max_retries=3,
        base_delay=0,
        clock=StepClock(),
    )
