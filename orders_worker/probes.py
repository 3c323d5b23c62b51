"""Liveness, readiness and metrics endpoints served next to the consumer loop."""

import logging
import threading

import uvicorn
from fastapi import FastAPI, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from orders_common.config import HTTP_HOST, WORKER_PROBE_PORT

logger = logging.getLogger(__name__)


def create_probe_app(consumer, store, metrics) -> FastAPI:
    app = FastAPI(title="Orders worker probes")

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz():
        return "ok"

    @app.get("/readyz", response_class=PlainTextResponse)
    def readyz():
        # ping is bounded by the store timeout
        if not consumer.is_connected() or not store.ping():
            return PlainTextResponse("not-ready", status_code=503)
        return "ready"

    @app.get("/metrics")
    def metrics_endpoint():
        return Response(generate_latest(metrics.registry), media_type=CONTENT_TYPE_LATEST)

    return app


def start_probe_server(app: FastAPI, host: str = HTTP_HOST, port: int = WORKER_PROBE_PORT) -> threading.Thread:
    config = uvicorn.Config(app, host=host, port=port, lifespan="off", log_config=None)
    server = uvicorn.Server(config)

    t = threading.Thread(target=server.run, name="worker-probes", daemon=True)
    t.start()
    logger.info(f"worker_metrics_listen addr={host}:{port}")
    return t
