"""
RabbitMQ publisher for order messages.

One connection/channel is opened at startup and reused for every publish.
pika's BlockingConnection is not thread-safe, so the connection lives on a
single worker thread and every request submits its publish to that thread
and waits at most ``timeout`` seconds for the broker confirm.
There is no reconnect: once the connection drops, every publish fails and
``is_ready()`` reports False until the process is restarted.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import pika
import pika.exceptions

from orders_common.config import API_RABBIT_HEARTBEAT, PUBLISH_TIMEOUT_SECONDS, QUEUE_NAME
from orders_common.messages import OrderCreateRequest, OrderMessage
from orders_common.rabbit import declare_queue, rabbit_connect

logger = logging.getLogger(__name__)

READY_CHECK_SECONDS = 1.0


class PublishError(Exception):
    reason = "publish"


class SerializationError(PublishError):
    reason = "serialization"


class PublishTimeout(PublishError):
    reason = "timeout"


class TransportError(PublishError):
    reason = "connection"


class OrderPublisher:

    def __init__(
        self,
        url: str = None,
        queue_name: str = QUEUE_NAME,
        timeout: float = PUBLISH_TIMEOUT_SECONDS,
        heartbeat: int = API_RABBIT_HEARTBEAT,
    ):
        self.url = url
        self.queue_name = queue_name
        self.timeout = timeout
        self.heartbeat = heartbeat

        self.connection = None
        self.channel = None
        self._broken = False

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rabbit-publisher")
        # connect errors propagate to the caller: startup fails fast
        self._executor.submit(self._connect).result()

    def _connect(self):
        self.connection, self.channel = rabbit_connect(self.url, heartbeat=self.heartbeat)
        declare_queue(self.channel, self.queue_name)
        # basic_publish blocks until the broker acks/nacks the message
        self.channel.confirm_delivery()

    def _is_open(self) -> bool:
        return bool(
            not self._broken
            and self.connection is not None
            and self.channel is not None
            and self.connection.is_open
            and self.channel.is_open
        )

    def _pump(self) -> bool:
        # an idle blocking connection only notices a dead socket when it does I/O
        if not self._is_open():
            return False
        try:
            self.connection.process_data_events(time_limit=0)
        except pika.exceptions.AMQPError as e:
            self._broken = True
            logger.error(f"rabbitmq_connection_lost err={e!r}")
            return False
        return self._is_open()

    def is_ready(self) -> bool:
        """True while the connection is usable. Never reconnects."""
        try:
            return self._executor.submit(self._pump).result(timeout=min(self.timeout, READY_CHECK_SECONDS))
        except FutureTimeout:
            # a publish holds the connection thread
            return self._is_open()
        except RuntimeError:
            return False

    def _basic_publish(self, body: bytes):
        if not self._is_open():
            raise TransportError("rabbitmq connection/channel closed")
        try:
            self.channel.basic_publish(
                exchange="",
                routing_key=self.queue_name,
                body=body,
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=2,  # persistent
                ),
                mandatory=True,
            )
        except (pika.exceptions.UnroutableError, pika.exceptions.NackError) as e:
            raise TransportError(f"broker rejected message: {e!r}") from e
        except pika.exceptions.AMQPError as e:
            raise TransportError(f"publish failed: {e!r}") from e

    def publish(self, order: OrderCreateRequest):
        """
        Enqueue one order durably.

        Returns once the broker confirmed the message. Raises
        SerializationError, PublishTimeout or TransportError.
        """
        try:
            body = OrderMessage.from_request(order).to_json()
        except (ValueError, UnicodeError) as e:
            raise SerializationError(f"cannot encode order: {e}") from e

        try:
            future = self._executor.submit(self._basic_publish, body)
        except RuntimeError as e:
            # executor already shut down
            raise TransportError("publisher closed") from e

        try:
            future.result(timeout=self.timeout)
        except FutureTimeout as e:
            # the submitted publish keeps running; it completes or fails on its own
            raise PublishTimeout(f"no broker confirm within {self.timeout}s") from e

    def _close(self):
        try:
            if self.channel is not None and self.channel.is_open:
                self.channel.close()
            if self.connection is not None and self.connection.is_open:
                self.connection.close()
        except pika.exceptions.AMQPError as e:
            logger.warning(f"rabbitmq_close_failed err={e!r}")

    def close(self):
        try:
            self._executor.submit(self._close).result(timeout=self.timeout)
        except (FutureTimeout, RuntimeError) as e:
            logger.warning(f"rabbitmq_close_failed err={e!r}")
        self._executor.shutdown(wait=False)
