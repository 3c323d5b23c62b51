import logging

from orders_common.config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL):
    """Configure root logging once per process."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # pika is chatty at INFO (every frame/channel event)
    logging.getLogger("pika").setLevel(logging.WARNING)
