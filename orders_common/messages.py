"""
Order message contract shared by the API publisher and the worker.

Wire format on the queue (UTF-8 JSON):

    {"order_id": "<string>", "quantity": <int, optional, default 1>}
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_QUANTITY = 1


def _check_order_id(v: str) -> str:
    # Postgres text columns cannot store NUL
    if "\x00" in v:
        raise ValueError("order_id must not contain NUL characters")
    return v


class OrderCreateRequest(BaseModel):
    """Body of POST /orders. Unknown fields are ignored."""

    model_config = ConfigDict(strict=True)

    order_id: str = Field(min_length=1)

    _order_id = field_validator("order_id")(_check_order_id)


class OrderMessage(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)

    order_id: str = Field(min_length=1)
    quantity: int = DEFAULT_QUANTITY

    _order_id = field_validator("order_id")(_check_order_id)

    @field_validator("quantity", mode="before")
    @classmethod
    def _null_quantity(cls, v: Any) -> Any:
        # explicit null on the wire behaves like an absent field
        return DEFAULT_QUANTITY if v is None else v

    @classmethod
    def from_request(cls, req: OrderCreateRequest) -> "OrderMessage":
        # the ingress path does not collect quantity
        return cls(order_id=req.order_id, quantity=DEFAULT_QUANTITY)

    def to_json(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_json(cls, body: bytes) -> "OrderMessage":
        """
        Raises UnicodeDecodeError for non UTF-8 bodies and
        pydantic.ValidationError for anything that is not a valid message.
        """
        return cls.model_validate_json(body.decode("utf-8"))


class Outcome(str, Enum):
    """Terminal classification of one dequeued message."""

    OK = "ok"
    DECODE_ERROR = "decode_error"
    DB_ERROR = "db_error"
