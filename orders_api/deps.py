from fastapi import Request

from orders_api.metrics import ApiMetrics
from orders_api.publisher import OrderPublisher
from orders_common.db import OrderStore


def get_publisher(request: Request) -> OrderPublisher:
    return request.app.state.publisher


def get_store(request: Request) -> OrderStore:
    return request.app.state.store


def get_metrics(request: Request) -> ApiMetrics:
    return request.app.state.metrics
