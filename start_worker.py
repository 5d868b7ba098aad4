#!/usr/bin/env python3
"""
Analytics Worker Runner

Starts the click analytics worker: consumes click events from RabbitMQ,
resolves their country and updates the link counters in the database.

Exits with status 1 when the queue connection is lost so the supervisor
(systemd, Kubernetes, docker restart policy) brings up a fresh process.
"""

import asyncio
import sys

from app import create_worker
from config import AppSettings
from errors import QueueDisconnectedError
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


async def run(settings: AppSettings) -> None:
    async with create_worker(settings) as worker:
        log.info("analytics_worker_started", queue=worker.queue.queue_name)
        await worker.run()


def main() -> int:
    settings = AppSettings()
    setup_logging(settings)

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        log.info("analytics_worker_stopped_by_user")
        return 0
    except QueueDisconnectedError:
        # Already logged by the pipeline with its final tally
        return 1
    except Exception as e:
        log.critical(
            "analytics_worker_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=e,
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
