from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from orders_api.deps import get_metrics, get_publisher

router = APIRouter(tags=["health"])


@router.get("/healthz", name="healthz", response_class=PlainTextResponse)
def healthz():
    return "ok"


@router.get("/readyz", name="readyz", response_class=PlainTextResponse)
def readyz(publisher=Depends(get_publisher)):
    if publisher is None or not publisher.is_ready():
        return PlainTextResponse("rabbitmq_not_ready", status_code=503)
    return "ready"


@router.get("/metrics", name="metrics")
def metrics(m=Depends(get_metrics)):
    return Response(generate_latest(m.registry), media_type=CONTENT_TYPE_LATEST)
