"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Database tests run against a throwaway SQLite file. Each transaction starts
with BEGIN IMMEDIATE so concurrent writers queue on SQLite's write lock the
way they queue on row locks in PostgreSQL.
"""

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine

from infrastructure.database.engine import create_session_factory
from infrastructure.database.tables import Base, Link


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def required_env(monkeypatch):
    """Set every variable AppSettings refuses to start without."""
    monkeypatch.setenv("PVLINK_DB_FQDN", "db.internal:5433")
    monkeypatch.setenv("PVLINK_DB_USER", "pvlink")
    monkeypatch.setenv("PVLINK_DB_PASSWORD", "s3cret")
    monkeypatch.setenv("PVLINK_DB_NAME", "pvlink")
    monkeypatch.setenv("PVLINK_CACHE_FQDN", "cache.internal:6379")
    monkeypatch.setenv("PVLINK_ANALYTIC_QUEUE_FQDN", "guest:guest@mq.internal")
    monkeypatch.setenv("ANALYTIC_IPINFO_TOKEN", "tok_123")
    return monkeypatch


# ── Database ──────────────────────────────────────────────────────────────────


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def link(session_factory):
    """Link 7 / abc123 with no clicks yet."""
    async with session_factory() as session, session.begin():
        session.add(Link(id=7, short_code="abc123", total_clicks=0))
    return 7


class _RefusedSession:
    def __init__(self, error: BaseException):
        self._error = error

    async def __aenter__(self):
        raise self._error

    async def __aexit__(self, *exc_info):
        return False


class FlakySessionFactory:
    """Session factory whose first ``failures`` sessions cannot reach the server.

    Later sessions come from ``session_factory``; without one every session fails.
    """

    def __init__(self, error: BaseException, session_factory=None, failures: int = 1):
        self._error = error
        self._session_factory = session_factory
        self._failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self._session_factory is None or self.calls <= self._failures:
            return _RefusedSession(self._error)
        return self._session_factory()


@pytest.fixture
def flaky_session_factory():
    """Factory: ``flaky_session_factory(error, session_factory=None, failures=1)``."""
    return FlakySessionFactory


# ── Geo fakes ─────────────────────────────────────────────────────────────────


class FakeRedis:
    """Dict-backed stand-in for the handful of redis.asyncio calls the cache makes."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key):
        self.get_calls += 1
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.set_calls += 1
        self.data[key] = value
        return True


class ScriptedGeoProvider:
    """Geo provider that replays a fixed list of responses and counts calls."""

    def __init__(self, *responses: httpx.Response):
        self._responses = list(responses)
        self.calls: list[str] = []

    async def country(self, ip: str) -> httpx.Response:
        self.calls.append(ip)
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def geo_provider():
    """Factory: ``geo_provider(resp1, resp2, ...)``; the last response repeats."""
    return ScriptedGeoProvider
