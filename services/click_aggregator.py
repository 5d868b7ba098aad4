"""
Transactional click counters.

Each click touches two rows in one transaction:
  - link.clicks                            += 1
  - link_country_click(link_id, country)   += 1 (inserted at 1 when absent)

Both statements are single-row increments evaluated by the database, and
the per-country row is written with INSERT ... ON CONFLICT DO UPDATE, so
concurrent workers can apply clicks in any order without application locks.
"""

from __future__ import annotations

import asyncio
import enum

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from errors import AggregationError
from infrastructure.database.tables import Link, LinkCountryClick

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AggregationResult(enum.Enum):
    APPLIED = "applied"
    # Unknown or deleted short code: nothing written, still a success
    LINK_NOT_FOUND = "link_not_found"


class ClickAggregator:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def increment(self, short_code: str, country_code: str) -> AggregationResult:
        """Count one click for ``short_code`` from ``country_code``.

        Raises:
            AggregationError: any database failure, including an unreachable
                server; the transaction is rolled back and neither counter
                changes.
        """
        try:
            async with self._session_factory() as session, session.begin():
                link_id = await session.scalar(
                    select(Link.id).where(Link.short_code == short_code)
                )
                if link_id is None:
                    return AggregationResult.LINK_NOT_FOUND

                await session.execute(
                    update(Link)
                    .where(Link.id == link_id)
                    .values({Link.total_clicks: Link.total_clicks + 1})
                )
                await session.execute(
                    self._country_upsert(session, link_id, country_code)
                )
        # asyncpg raises connect failures (refused, timed out) unwrapped
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            raise AggregationError(
                "failed to increment click counters",
                details={
                    "short_code": short_code,
                    "country": country_code,
                    "error_type": type(e).__name__,
                },
            ) from e

        return AggregationResult.APPLIED

    @staticmethod
    def _country_upsert(session: AsyncSession, link_id: int, country_code: str):
        insert = _INSERT_BY_DIALECT[session.get_bind().dialect.name]
        table = LinkCountryClick.__table__
        stmt = insert(table).values(link_id=link_id, country_code=country_code, clicks=1)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.link_id, table.c.country_code],
            set_={"clicks": table.c.clicks + 1},
        )
