"""Async SQLAlchemy engine and session factory.

One engine (and so one connection pool) per worker process; every click
event borrows a connection for the length of its transaction.
"""

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config import DatabaseSettings


def create_engine(settings: DatabaseSettings) -> AsyncEngine:
    url = make_url(settings.sqlalchemy_url)
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    # SQLite picks its own pool class; sizing only applies to server databases
    if url.get_backend_name() != "sqlite":
        kwargs["pool_size"] = settings.max_conns
        kwargs["max_overflow"] = 0
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
