"""
Click analytics pipeline.

Pulls one payload at a time and runs it through
decode -> geo resolve -> aggregate -> log before looking at the next.

Per-event failures never leave ``handle``:
  - a corrupted payload is logged and dropped
  - a geo failure falls back to UNKNOWN_COUNTRY (on_resolver_failure)
  - a database failure drops that click

The only way out of ``run`` is the payload source going away, which is
reported to the caller as QueueDisconnectedError.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from typing import AsyncIterable, NoReturn, Optional

from errors import AggregationError, DecodeError, GeoResolutionError, QueueDisconnectedError
from schemas.models.click_event import ClickEvent
from services.click_aggregator import AggregationResult, ClickAggregator
from services.geo_resolver import UNKNOWN_COUNTRY, GeoResolver
from shared.logging import get_logger, hash_ip, log_with_context
from workers.click_decoder import decode_click_event

log = get_logger(__name__)

_NO_IP = "N/A"


class PipelineState(enum.Enum):
    RUNNING = "running"
    TERMINATED = "terminated"


class ClickOutcome(enum.Enum):
    APPLIED = "applied"
    LINK_NOT_FOUND = "link_not_found"
    DECODE_FAILED = "decode_failed"
    AGGREGATION_FAILED = "aggregation_failed"


@dataclass
class PipelineStats:
    applied: int = 0
    link_not_found: int = 0
    decode_failed: int = 0
    aggregation_failed: int = 0
    geo_fallbacks: int = 0

    def record(self, outcome: ClickOutcome) -> None:
        field = outcome.value
        setattr(self, field, getattr(self, field) + 1)


class ClickPipeline:
    def __init__(
        self,
        resolver: GeoResolver,
        aggregator: ClickAggregator,
        production: bool = False,
    ) -> None:
        self._resolver = resolver
        self._aggregator = aggregator
        self._production = production
        self.state = PipelineState.RUNNING
        self.stats = PipelineStats()

    def on_resolver_failure(self, event: ClickEvent, error: GeoResolutionError) -> str:
        """Fallback country for a click whose origin could not be resolved."""
        self.stats.geo_fallbacks += 1
        log.error(
            "geo_resolution_failed",
            ip=self._loggable_ip(event.ip),
            short_code=event.short_code,
            **error.to_dict(),
        )
        return UNKNOWN_COUNTRY

    async def handle(self, payload: bytes) -> ClickOutcome:
        outcome = await self._handle(payload)
        self.stats.record(outcome)
        return outcome

    async def _handle(self, payload: bytes) -> ClickOutcome:
        try:
            event = decode_click_event(payload)
        except DecodeError as e:
            log.error("click_event_decode_failed", **e.to_dict())
            return ClickOutcome.DECODE_FAILED

        try:
            country = await self._resolver.resolve(event.ip)
        except GeoResolutionError as e:
            country = self.on_resolver_failure(event, e)

        event_log = log_with_context(
            log,
            ip=self._loggable_ip(event.ip),
            country=country,
            short_code=event.short_code,
        )

        try:
            result = await self._aggregator.increment(event.short_code, country)
        except AggregationError as e:
            event_log.error("click_increment_failed", **e.to_dict())
            return ClickOutcome.AGGREGATION_FAILED

        if result is AggregationResult.LINK_NOT_FOUND:
            event_log.info("click_link_not_found")
            return ClickOutcome.LINK_NOT_FOUND

        event_log.info("click_incremented")
        return ClickOutcome.APPLIED

    async def run(self, source: AsyncIterable[bytes]) -> NoReturn:
        """Consume ``source`` until it stops producing payloads."""
        error: Optional[QueueDisconnectedError] = None
        try:
            async for payload in source:
                await self.handle(payload)
        except QueueDisconnectedError as e:
            error = e

        self.state = PipelineState.TERMINATED
        if error is None:
            error = QueueDisconnectedError("click event source closed")
        log.critical(
            "analytics_pipeline_terminated", **error.to_dict(), **asdict(self.stats)
        )
        raise error

    def _loggable_ip(self, ip: Optional[str]) -> str:
        if ip is None:
            return _NO_IP
        return hash_ip(ip, self._production)
