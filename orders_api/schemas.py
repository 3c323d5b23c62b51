from datetime import datetime

from pydantic import BaseModel


class AcceptedOut(BaseModel):
    status: str = "accepted"


class OrderOut(BaseModel):
    order_id: str
    created_at: datetime
    quantity: int
