"""
Worker factory.

create_worker() is the single entry point for building the pipeline and
every collaborator it talks to. It is an async context manager so the
collaborators' connections are closed in reverse order on the way out.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import sentry_sdk

from config import AppSettings
from infrastructure.cache.geo_cache import GeoCache
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.database.engine import create_engine, create_session_factory
from infrastructure.geo.ipinfo import IpinfoLiteProvider
from infrastructure.http_client import HttpClient
from infrastructure.queue.click_queue import ClickQueue
from services.click_aggregator import ClickAggregator
from services.geo_resolver import GeoResolver
from workers.analytics_worker import ClickPipeline


@dataclass
class Worker:
    pipeline: ClickPipeline
    queue: ClickQueue

    async def run(self) -> None:
        await self.pipeline.run(self.queue.payloads())


def init_sentry(settings: AppSettings) -> None:
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=False,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )


@asynccontextmanager
async def create_worker(settings: AppSettings) -> AsyncIterator[Worker]:
    """Build a fully wired worker from ``settings``."""
    # Initialise Sentry before anything else so it captures startup errors
    init_sentry(settings)

    # ── Startup ──────────────────────────────────────────────────────────
    redis_client = await create_redis_client(settings.cache.redis_uri)
    http_client = HttpClient(timeout=settings.geo.timeout_seconds)
    engine = create_engine(settings.db)
    queue = ClickQueue(settings.queue.amqp_url, settings.queue.name)

    try:
        await queue.connect()

        resolver = GeoResolver(
            cache=GeoCache(redis_client, ttl_seconds=settings.cache.ttl_seconds),
            provider=IpinfoLiteProvider(
                settings.geo.token, http_client, host=settings.geo.host
            ),
            max_attempts=settings.geo.max_attempts,
        )
        aggregator = ClickAggregator(create_session_factory(engine))
        pipeline = ClickPipeline(
            resolver, aggregator, production=settings.is_production
        )

        yield Worker(pipeline=pipeline, queue=queue)

    # ── Shutdown ─────────────────────────────────────────────────────────
    finally:
        await queue.close()
        await engine.dispose()
        await http_client.aclose()
        if redis_client is not None:
            await redis_client.aclose()
