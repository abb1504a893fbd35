from typing import Annotated, Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from app.models.seat import SeatType
from app.models.ticket import TicketStatus
from app.schemas.screening import ScreeningSummary
from app.schemas.product import ProductSummary
from app.schemas.user import UserSummary


# Ticket: reservation requests
class SeatPrice(BaseModel):
    seat_id: int
    price: Optional[int] = Field(default=None, ge=0)


class TicketReserve(BaseModel):
    screening_id: int
    seat_id: int


class TicketBatchReserve(BaseModel):
    screening_id: int
    seat_ids: Annotated[List[int], Field(min_length=1)]


class TicketBatchReserveResponse(BaseModel):
    ticket_ids: List[int]


# Nested response objects
class TicketSeat(BaseModel):
    id: int
    row: str
    number: int
    seat_type: SeatType

    class Config:
        from_attributes = True


class TicketPayment(BaseModel):
    id: int
    amount: int
    method: str
    status: str
    transaction_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TicketOrderItem(BaseModel):
    id: int
    quantity: int
    price: int
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True


# Ticket: full response
class Ticket(BaseModel):
    id: int
    user_id: int
    screening_id: int
    seat_id: int
    order_id: Optional[int] = None
    price: int
    status: TicketStatus
    qr_code: Optional[str] = None
    scan_code: str
    created_at: Optional[datetime] = None
    screening: Optional[ScreeningSummary] = None
    seat: Optional[TicketSeat] = None
    payment: Optional[TicketPayment] = None
    order_items: List[TicketOrderItem] = []

    class Config:
        from_attributes = True


# Ticket: admin view (includes user info)
class AdminTicket(Ticket):
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True
