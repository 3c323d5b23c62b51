import logging
from typing import List

import psycopg2
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from orders_api.deps import get_metrics, get_publisher, get_store
from orders_api.publisher import PublishError
from orders_api.schemas import AcceptedOut, OrderOut
from orders_common.messages import OrderCreateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", name="orders_list", response_model=List[OrderOut])
def list_orders(store=Depends(get_store)):
    try:
        return store.list_orders()
    except psycopg2.Error as e:
        logger.error(f"list_orders_failed err={e}")
        return JSONResponse(status_code=500, content={"error": "db error"})


@router.post("", name="orders_create", status_code=202, response_model=AcceptedOut)
async def create_order(request: Request, publisher=Depends(get_publisher), metrics=Depends(get_metrics)):
    """
    Validate, publish once, answer 202.

    Invalid input never reaches the publisher. A failed publish is not
    retried here; the caller retries the whole request.
    """
    body = await request.body()
    try:
        order = OrderCreateRequest.model_validate_json(body)
    except ValidationError as e:
        metrics.count_create("invalid_input")
        logger.warning(f"order_invalid_payload err={e.errors(include_url=False)}")
        return JSONResponse(status_code=400, content={"error": "invalid payload"})

    try:
        # publish outlives a disconnected caller once started
        await run_in_threadpool(publisher.publish, order)
    except PublishError as e:
        metrics.count_create("publish_failed")
        logger.error(f"order_publish_failed order_id={order.order_id} reason={e.reason} err={e}")
        return JSONResponse(status_code=500, content={"error": "publish failed"})

    metrics.count_create("accepted")
    logger.info(f"order_published order_id={order.order_id}")
    return JSONResponse(status_code=202, content=AcceptedOut().model_dump())
