import logging
from contextlib import closing
from datetime import datetime
from typing import Any, Dict, List

import psycopg2

from orders_common.config import DB_TIMEOUT_SECONDS, ORDERS_LIST_LIMIT, POSTGRES_DSN, require
from orders_common.messages import OrderMessage

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS orders (
    order_id   TEXT PRIMARY KEY,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    quantity   INTEGER NOT NULL DEFAULT 1
);
"""


def record_to_dict(row) -> Dict[str, Any]:
    order_id, created_at, quantity = row
    return {
        "order_id": order_id,
        "created_at": created_at.isoformat() if isinstance(created_at, datetime) else created_at,
        "quantity": quantity,
    }


class OrderStore:
    """
    Handle on the orders table.

    Every call opens its own short-lived connection, so the handle can be
    shared between request threads and probe threads. ``timeout`` applies
    separately to connecting (connect_timeout) and to each statement
    (statement_timeout), so one call can take up to twice ``timeout``.
    libpq clamps connect_timeout to at least 2 seconds.
    """

    def __init__(self, dsn: str = None, timeout: int = DB_TIMEOUT_SECONDS):
        self.dsn = require("POSTGRES_DSN", dsn or POSTGRES_DSN)
        self.timeout = timeout

    def db_conn(self):
        return psycopg2.connect(
            self.dsn,
            connect_timeout=self.timeout,
            options=f"-c statement_timeout={int(self.timeout * 1000)}",
        )

    def init_schema(self):
        with closing(self.db_conn()) as conn:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_SQL)
        logger.info("postgres_connected dsn=redacted")

    def insert_order(self, msg: OrderMessage):
        """
        Single insert, no upsert: a duplicate order_id surfaces as
        psycopg2.errors.UniqueViolation.
        """
        with closing(self.db_conn()) as conn:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO orders (order_id, quantity) VALUES (%s, %s)",
                        (msg.order_id, msg.quantity),
                    )

    def list_orders(self, limit: int = ORDERS_LIST_LIMIT) -> List[Dict[str, Any]]:
        with closing(self.db_conn()) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT order_id, created_at, quantity
                    FROM orders
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = cur.fetchall()
        return [record_to_dict(r) for r in rows]

    def ping(self) -> bool:
        try:
            with closing(self.db_conn()) as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()
            return True
        except psycopg2.Error as e:
            logger.warning(f"postgres_ping_failed err={e}")
            return False
