from datetime import datetime, timezone
from unittest.mock import patch

import psycopg2
import psycopg2.errors
import pytest

from orders_common.db import OrderStore
from orders_common.messages import OrderMessage

from conftest import PG_DSN


@pytest.fixture
def pg():
    with patch("orders_common.db.psycopg2.connect") as connect:
        conn = connect.return_value
        cur = conn.cursor.return_value.__enter__.return_value
        yield connect, conn, cur


class TestOrderStore:

    def test_requires_dsn(self):
        with patch("orders_common.db.POSTGRES_DSN", None):
            with pytest.raises(RuntimeError, match="POSTGRES_DSN not set"):
                OrderStore()

    def test_connections_are_time_bounded(self, pg):
        connect, _, _ = pg
        OrderStore(PG_DSN).ping()

        connect.assert_called_once_with(
            PG_DSN, connect_timeout=2, options="-c statement_timeout=2000"
        )

    def test_init_schema(self, pg):
        _, conn, cur = pg
        OrderStore(PG_DSN).init_schema()

        sql = cur.execute.call_args.args[0]
        assert "CREATE TABLE IF NOT EXISTS orders" in sql
        assert "order_id   TEXT PRIMARY KEY" in sql
        assert "quantity" in sql
        conn.close.assert_called_once()

    def test_insert_order(self, pg):
        _, conn, cur = pg
        OrderStore(PG_DSN).insert_order(OrderMessage(order_id="A-100", quantity=2))

        cur.execute.assert_called_once_with(
            "INSERT INTO orders (order_id, quantity) VALUES (%s, %s)", ("A-100", 2)
        )
        conn.__exit__.assert_called_once()
        conn.close.assert_called_once()

    def test_insert_duplicate_raises(self, pg):
        _, conn, cur = pg
        cur.execute.side_effect = psycopg2.errors.UniqueViolation("duplicate key")

        with pytest.raises(psycopg2.IntegrityError):
            OrderStore(PG_DSN).insert_order(OrderMessage(order_id="A-100"))
        conn.close.assert_called_once()

    def test_list_orders(self, pg):
        _, _, cur = pg
        ts = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
        cur.fetchall.return_value = [("A-100", ts, 1)]

        rows = OrderStore(PG_DSN).list_orders(limit=10)

        assert rows == [{"order_id": "A-100", "created_at": "2026-10-18T12:00:00+00:00", "quantity": 1}]
        assert cur.execute.call_args.args[1] == (10,)
        assert "ORDER BY created_at DESC" in cur.execute.call_args.args[0]

    def test_ping_ok(self, pg):
        assert OrderStore(PG_DSN).ping() is True

    def test_ping_unreachable(self, pg):
        connect, _, _ = pg
        connect.side_effect = psycopg2.OperationalError("could not connect to server")
        assert OrderStore(PG_DSN).ping() is False

    def test_ping_timeout(self, pg):
        _, _, cur = pg
        cur.execute.side_effect = psycopg2.errors.QueryCanceled("canceling statement due to statement timeout")
        assert OrderStore(PG_DSN).ping() is False
