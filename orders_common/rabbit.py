import logging
from typing import Tuple

import pika
from pika.adapters.blocking_connection import BlockingChannel

from orders_common.config import QUEUE_NAME, RABBITMQ_URL, require

logger = logging.getLogger(__name__)


def rabbit_connect(url: str = None, heartbeat: int = None) -> Tuple[pika.BlockingConnection, BlockingChannel]:
    url = require("RABBITMQ_URL", url or RABBITMQ_URL)

    params = pika.URLParameters(url)
    if heartbeat is not None:
        params.heartbeat = heartbeat
    params.blocked_connection_timeout = 30
    connection = pika.BlockingConnection(params)
    channel = connection.channel()
    return connection, channel


def declare_queue(channel: BlockingChannel, queue_name: str = QUEUE_NAME):
    """Idempotent: both processes declare the same durable queue at startup."""
    channel.queue_declare(
        queue=queue_name,
        durable=True,
        exclusive=False,
        auto_delete=False,
    )
    logger.info(f"rabbitmq_connected queue={queue_name}")
