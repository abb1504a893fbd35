from typing import Annotated, Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from app.schemas.product import ProductSummary
from app.schemas.ticket import Ticket
from app.schemas.user import UserSummary


# Order: product line (POST /orders, PUT /orders/{id}/products)
class OrderProductLine(BaseModel):
    product_id: int
    quantity: Annotated[int, Field(ge=1, le=50)] = 1
    seat_id: Optional[int] = None  # scopes the product to that seat's ticket


# Order: Create (POST /orders). No total: it is always computed server-side.
class OrderCreate(BaseModel):
    screening_id: int
    seat_ids: Annotated[List[int], Field(min_length=1)]
    products: List[OrderProductLine] = []


class OrderProductsUpdate(BaseModel):
    products: List[OrderProductLine] = []


class OrderItem(BaseModel):
    id: int
    product_id: int
    ticket_id: Optional[int] = None
    quantity: int
    price: int
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True


# Order: full response
class Order(BaseModel):
    id: int
    user_id: int
    total_amount: int
    status: str
    created_at: Optional[datetime] = None
    scan_code: str
    tickets: List[Ticket] = []
    order_items: List[OrderItem] = []
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True
