import os

# ---------------- Env ----------------
RABBITMQ_URL = os.getenv("RABBITMQ_URL")
POSTGRES_DSN = os.getenv("POSTGRES_DSN")

QUEUE_NAME = os.getenv("ORDERS_QUEUE", "orders")

# ---------------- Timeouts ----------------
PUBLISH_TIMEOUT_SECONDS = float(os.getenv("PUBLISH_TIMEOUT_SECONDS", "5"))
DB_TIMEOUT_SECONDS = int(os.getenv("DB_TIMEOUT_SECONDS", "2"))

# 0 disables heartbeats; the API publisher does not pump the connection while idle
API_RABBIT_HEARTBEAT = int(os.getenv("RABBIT_HEARTBEAT", "0"))
WORKER_RABBIT_HEARTBEAT = int(os.getenv("RABBIT_HEARTBEAT", "30"))

# ---------------- HTTP ----------------
HTTP_HOST = os.getenv("HTTP_HOST", "0.0.0.0")
HTTP_PORT = int(os.getenv("HTTP_PORT", "8080"))
WORKER_PROBE_PORT = int(os.getenv("WORKER_PROBE_PORT", "8081"))

ORDERS_LIST_LIMIT = int(os.getenv("ORDERS_LIST_LIMIT", "50"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def require(name: str, value):
    if not value:
        raise RuntimeError(f"{name} not set")
    return value
