"""RabbitMQ source of click event payloads.

Every worker instance consumes from the same durable queue, and RabbitMQ
hands each message to exactly one consumer of a queue: the queue name is
the consumer group. ``prefetch_count=1`` keeps at most one unacknowledged
event per instance.

The connection is a plain ``connect``, not ``connect_robust``: when the
broker goes away the payload stream raises QueueDisconnectedError and the
process is left to its supervisor to restart.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractQueue
from aio_pika.exceptions import AMQPError, ChannelInvalidStateError

from errors import QueueDisconnectedError
from shared.logging import get_logger

log = get_logger(__name__)


class ClickQueue:
    def __init__(self, url: str, queue_name: str) -> None:
        self._url = url
        self.queue_name = queue_name
        self._connection: Optional[AbstractConnection] = None
        self._channel: Optional[AbstractChannel] = None
        self._queue: Optional[AbstractQueue] = None

    async def connect(self) -> None:
        self._connection = await aio_pika.connect(self._url)
        self._channel = await self._connection.channel()
        await self._channel.set_qos(prefetch_count=1)
        self._queue = await self._channel.declare_queue(self.queue_name, durable=True)
        log.info("analytics_queue_connected", queue=self.queue_name)

    async def payloads(self) -> AsyncIterator[bytes]:
        """Yield message bodies one at a time.

        A message is acknowledged when the consumer asks for the next one,
        i.e. after it has been fully handled. Failed events are never
        re-queued.
        """
        if self._queue is None:
            raise QueueDisconnectedError("analytics queue is not connected")
        try:
            async with self._queue.iterator() as queue_iter:
                async for message in queue_iter:
                    async with message.process(requeue=False):
                        yield message.body
        except (AMQPError, ChannelInvalidStateError, ConnectionError) as e:
            raise QueueDisconnectedError(
                "lost connection with the analytics queue",
                details={"queue": self.queue_name, "error_type": type(e).__name__},
            ) from e
        raise QueueDisconnectedError(
            "analytics queue stopped delivering messages",
            details={"queue": self.queue_name},
        )

    async def close(self) -> None:
        if self._connection is not None and not self._connection.is_closed:
            await self._connection.close()
        self._connection = self._channel = self._queue = None
