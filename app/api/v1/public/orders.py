from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.order import Order as OrderSchema, OrderCreate, OrderProductsUpdate
from app.schemas.payment import (
    OrderPaymentCreate,
    OrderPaymentResponse,
    Payment as PaymentSchema,
    TicketPaymentCreate,
    TicketPaymentResponse,
)
from app.services import orders, payments

router = APIRouter(prefix="/orders", tags=["Orders"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@router.post("/", response_model=OrderSchema, status_code=status.HTTP_201_CREATED)
def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Reserve the seats and create the order in one step.
    The total is computed from the screening price and active product prices.
    """
    return orders.create_order(
        db, current_user.id, data.screening_id, data.seat_ids, data.products
    ).unwrap()


@router.get("/", response_model=List[OrderSchema])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return orders.list_user_orders(db, current_user.id).unwrap()


@router.get("/{order_id}", response_model=OrderSchema)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return orders.get_order(db, order_id, user_id=current_user.id).unwrap()


@router.put("/{order_id}/products", response_model=OrderSchema)
def replace_order_products(
    order_id: int,
    data: OrderProductsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replace the product lines of an unpaid order and recompute its total."""
    return orders.update_order_products(
        db, order_id, data.products, user_id=current_user.id
    ).unwrap()


# ---------------------------------------------------------------------------
# Payment (simulated, always succeeds)
# ---------------------------------------------------------------------------


@router.post("/{order_id}/pay", response_model=OrderPaymentResponse)
def pay_order(
    order_id: int,
    data: OrderPaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    settled = payments.pay_for_order(db, current_user.id, order_id, data.method).unwrap()
    return OrderPaymentResponse(
        order_id=order_id,
        order_status=settled["order"].status,
        payments=[PaymentSchema.model_validate(p) for p in settled["payments"]],
        qr_codes=settled["qr_codes"],
        message=f"{len(settled['payments'])} ticket(s) paid",
    )


@payments_router.post("/tickets/{ticket_id}", response_model=TicketPaymentResponse)
def pay_ticket(
    ticket_id: int,
    data: TicketPaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    settled = payments.pay_for_ticket(
        db, current_user.id, ticket_id, data.amount, data.method
    ).unwrap()
    return TicketPaymentResponse(
        payment=PaymentSchema.model_validate(settled["payment"]),
        qr_code=settled["qr_code"],
    )
