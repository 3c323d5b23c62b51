import html
import logging
from string import Template

import psycopg2
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse

from orders_api.deps import get_store
from orders_common.config import ORDERS_LIST_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

INDEX_TEMPLATE = Template("""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>Orders demo</title>
    <style>
      body { font-family: Arial, system-ui, sans-serif; max-width: 720px; margin: 2rem auto; }
      table { width: 100%; border-collapse: collapse; }
      th, td { text-align: left; padding: 0.4rem; border-bottom: 1px solid #ddd; }
      .status-line--error { color: #b00020; }
    </style>
  </head>
  <body>
    <h1>Orders</h1>
    <form id="order-form">
      <label for="order_id">Order ID</label>
      <input id="order_id" name="order_id" placeholder="e.g. A-100" required>
      <button type="submit">Create order</button>
    </form>
    <p id="status" class="status-line"></p>

    <h2>Last $limit orders</h2>
    <table>
      <thead><tr><th>Order ID</th><th>Created at</th><th>Quantity</th></tr></thead>
      <tbody>
$rows
      </tbody>
    </table>

    <script>
      const statusEl = document.getElementById('status');
      document.getElementById('order-form').addEventListener('submit', async (e) => {
        e.preventDefault();
        const input = document.getElementById('order_id');
        const id = input.value.trim();
        if (!id) return;
        statusEl.className = 'status-line';
        statusEl.textContent = 'Sending...';
        const res = await fetch('/orders', {
          method: 'POST',
          headers: {'Content-Type': 'application/json'},
          body: JSON.stringify({order_id: id})
        });
        if (res.ok) {
          statusEl.textContent = 'Order accepted. Refresh in a moment to see it in the list.';
          input.value = '';
        } else {
          statusEl.classList.add('status-line--error');
          statusEl.textContent = 'POST /orders failed: ' + await res.text();
        }
      });
    </script>
  </body>
</html>
""")

EMPTY_ROW = '        <tr><td colspan="3">No orders yet.</td></tr>'


def render_index(orders, limit: int) -> str:
    rows = [
        "        <tr><td>{}</td><td>{}</td><td>{}</td></tr>".format(
            html.escape(str(o["order_id"])),
            html.escape(str(o["created_at"])),
            html.escape(str(o["quantity"])),
        )
        for o in orders
    ]
    return INDEX_TEMPLATE.substitute(limit=limit, rows="\n".join(rows) or EMPTY_ROW)


@router.get("/", name="index", response_class=HTMLResponse)
def index(store=Depends(get_store)):
    try:
        orders = store.list_orders()
    except psycopg2.Error as e:
        logger.error(f"list_orders_failed err={e}")
        return PlainTextResponse("DB error", status_code=500)
    return render_index(orders, ORDERS_LIST_LIMIT)
