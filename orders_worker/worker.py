"""
Orders worker: drains the orders queue into Postgres.

Deliveries are auto-acknowledged on receipt, before the insert. A crash or
DB failure between receipt and insert loses that order; there is no retry
and no dead-letter queue. Each message ends in exactly one Outcome.
"""

import logging
import sys

import pika
import pika.exceptions
import psycopg2
from pydantic import ValidationError

from orders_common.config import QUEUE_NAME, WORKER_RABBIT_HEARTBEAT
from orders_common.db import OrderStore
from orders_common.logging_setup import setup_logging
from orders_common.messages import OrderMessage, Outcome
from orders_common.rabbit import declare_queue, rabbit_connect
from orders_worker.metrics import WorkerMetrics
from orders_worker.probes import create_probe_app, start_probe_server

logger = logging.getLogger(__name__)


class OrderConsumer:

    def __init__(
        self,
        store: OrderStore,
        metrics: WorkerMetrics,
        url: str = None,
        queue_name: str = QUEUE_NAME,
        heartbeat: int = WORKER_RABBIT_HEARTBEAT,
    ):
        self.store = store
        self.metrics = metrics
        self.url = url
        self.queue_name = queue_name
        self.heartbeat = heartbeat

        self.connection = None
        self.channel = None

    def connect(self):
        self.connection, self.channel = rabbit_connect(self.url, heartbeat=self.heartbeat)
        declare_queue(self.channel, self.queue_name)

    def is_connected(self) -> bool:
        return self.connection is not None and self.connection.is_open

    def handle_message(self, body: bytes) -> Outcome:
        """Decode and persist one delivery. Never raises for bad input or DB errors."""
        try:
            msg = OrderMessage.from_json(body)
        except (ValidationError, UnicodeDecodeError) as e:
            self.metrics.count(Outcome.DECODE_ERROR)
            logger.error(f"order_decode_failed body={body!r} err={e}")
            return Outcome.DECODE_ERROR

        try:
            self.store.insert_order(msg)
        except (psycopg2.Error, ValueError) as e:
            # psycopg2 raises ValueError for values it refuses to quote client-side
            self.metrics.count(Outcome.DB_ERROR)
            logger.error(f"order_insert_failed order_id={msg.order_id} err={str(e).strip()}")
            return Outcome.DB_ERROR

        self.metrics.count(Outcome.OK)
        logger.info(f"order_inserted order_id={msg.order_id} quantity={msg.quantity}")
        return Outcome.OK

    def _on_message(self, channel, method, properties, body):
        self.handle_message(body)

    def run(self):
        """
        Consume until the delivery stream closes. Returns instead of
        reconnecting; the supervisor restarts the process.
        """
        self.channel.basic_consume(
            queue=self.queue_name,
            on_message_callback=self._on_message,
            auto_ack=True,
        )
        logger.info(f"worker_started queue={self.queue_name}")
        try:
            self.channel.start_consuming()
        except pika.exceptions.AMQPError as e:
            logger.error(f"worker_consume_failed err={e!r}")
        logger.warning("worker_msg_channel_closed")

    def close(self):
        if self.connection is not None and self.connection.is_open:
            try:
                self.connection.close()
            except pika.exceptions.AMQPError as e:
                logger.warning(f"rabbitmq_close_failed err={e!r}")


def main():
    setup_logging()

    metrics = WorkerMetrics()
    try:
        store = OrderStore()
        store.init_schema()
    except (RuntimeError, psycopg2.Error) as e:
        logger.error(f"postgres_connect_failed err={e}")
        sys.exit(1)

    consumer = OrderConsumer(store, metrics)
    try:
        consumer.connect()
    except (RuntimeError, pika.exceptions.AMQPError) as e:
        logger.error(f"rabbitmq_connect_failed err={e!r}")
        sys.exit(1)

    start_probe_server(create_probe_app(consumer, store, metrics))

    try:
        consumer.run()
    except KeyboardInterrupt:
        consumer.channel.stop_consuming()
        consumer.close()
        logger.info("worker_stopped")
        return

    consumer.close()
    # stream closed: exit non-zero so the supervisor restarts us
    sys.exit(1)


if __name__ == "__main__":
    main()
