import logging
import sys
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from orders_api.metrics import ApiMetrics
from orders_api.pages import router as pages_router
from orders_api.publisher import OrderPublisher
from orders_api.routers.health import router as health_router
from orders_api.routers.orders import router as orders_router
from orders_common.config import HTTP_HOST, HTTP_PORT
from orders_common.db import OrderStore
from orders_common.logging_setup import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Builds whatever was not injected into create_app(): store first
    (schema bootstrap), then the publisher. Anything that fails here
    aborts startup.
    """
    owned_publisher = False
    if app.state.store is None:
        app.state.store = OrderStore()
    app.state.store.init_schema()

    if app.state.publisher is None:
        app.state.publisher = OrderPublisher()
        owned_publisher = True

    logger.info("orders_api_ready")
    yield

    if owned_publisher:
        app.state.publisher.close()
    logger.info("orders_api_stopped")


def create_app(publisher=None, store=None, metrics: ApiMetrics = None) -> FastAPI:
    app = FastAPI(title="Orders API", lifespan=lifespan)

    app.state.publisher = publisher
    app.state.store = store
    app.state.metrics = metrics if metrics is not None else ApiMetrics()

    @app.middleware("http")
    async def log_and_count(request: Request, call_next):
        start = time.perf_counter()
        # unhandled exceptions become a 500 further out; count them as one here
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start
            route = request.scope.get("route")
            handler = getattr(route, "name", None) or "unknown"
            m = request.app.state.metrics
            m.http_duration.labels(handler=handler, method=request.method).observe(duration)
            m.http_requests.labels(handler=handler, method=request.method, code=str(status_code)).inc()

            if status_code >= 500:
                logger.error(f"http_request_error handler={handler} method={request.method} code={status_code}")

    app.include_router(pages_router)
    app.include_router(health_router)
    app.include_router(orders_router)
    return app


def main():
    setup_logging()
    try:
        app = create_app()
        logger.info(f"orders_api_starting addr={HTTP_HOST}:{HTTP_PORT}")
        uvicorn.run(app, host=HTTP_HOST, port=HTTP_PORT, lifespan="on", log_config=None)
    except Exception as e:
        logger.error(f"http_server_failed err={e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
