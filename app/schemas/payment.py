from typing import List, Literal
from pydantic import BaseModel, Field

from app.schemas.ticket import TicketPayment

PaymentMethod = Literal["card", "bank_transfer", "cash"]


class OrderPaymentCreate(BaseModel):
    method: PaymentMethod = "card"


class TicketPaymentCreate(BaseModel):
    amount: int = Field(gt=0)
    method: PaymentMethod = "card"


class Payment(TicketPayment):
    ticket_id: int
    user_id: int


class TicketPaymentResponse(BaseModel):
    payment: Payment
    qr_code: str


class OrderPaymentResponse(BaseModel):
    order_id: int
    order_status: str
    payments: List[Payment]
    qr_codes: List[str]
    message: str
