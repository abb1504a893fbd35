from typing import Literal, Optional, Union
from pydantic import BaseModel

from app.schemas.order import Order
from app.schemas.ticket import AdminTicket


class ScanRequest(BaseModel):
    code: str


class ScanResult(BaseModel):
    type: Literal["order", "ticket"]
    entity: Union[Order, AdminTicket]


class TicketCheckInResponse(BaseModel):
    ticket_id: int
    status: str
    changed: bool
    message: Optional[str] = None


class OrderCheckInResponse(BaseModel):
    order_id: int
    marked: int
    already_used: int
    skipped: int
    message: Optional[str] = None
