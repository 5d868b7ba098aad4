"""
Worker error hierarchy.

AppError is the base for all typed errors. Per-event errors (decode, geo
resolution, aggregation) are recovered inside the pipeline and only ever
surface as log lines; QueueDisconnectedError is the single fatal error and
propagates to the process entry point.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    error_code: str = "internal_error"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class DecodeError(AppError):
    error_code = "decode_error"


class GeoResolutionError(AppError):
    """Country lookup failed; callers fall back to the unknown-country code."""

    error_code = "geo_resolution_error"


class RateLimitError(GeoResolutionError):
    error_code = "rate_limit_exceeded"


class ResolutionExhaustedError(GeoResolutionError):
    error_code = "resolution_exhausted"


class InvalidRetryAfterError(GeoResolutionError):
    error_code = "invalid_retry_after"


class GeoLookupError(GeoResolutionError):
    error_code = "geo_lookup_failed"


class AggregationError(AppError):
    error_code = "aggregation_error"


class QueueDisconnectedError(AppError):
    error_code = "queue_disconnected"
