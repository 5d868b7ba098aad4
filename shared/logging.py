"""
Logger factory and utility functions for the analytics worker.

Provides:
- get_logger(): Get a configured logger instance
- hash_ip(): Hash IP addresses for privacy
- log_with_context(): Bind per-event context to a logger
"""

from __future__ import annotations

import hashlib
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from shared.logging_config import configure_structlog, setup_logging


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("click_incremented", short_code="abc123", country="FR")
    """
    return structlog.get_logger(name)


def hash_ip(ip_address: Optional[str], production: bool) -> Optional[str]:
    """
    Hash IP address for privacy in production.

    In production: Returns SHA-256 hash (first 16 chars) for GDPR compliance
    In development: Returns the original IP for easier debugging
    """
    if ip_address is None:
        return None
    if production and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """Bind context to a logger for all subsequent log calls."""
    return logger.bind(**context)


__all__ = [
    "get_logger",
    "hash_ip",
    "log_with_context",
    "configure_structlog",
    "setup_logging",
]
