"""
Simulated payment settlement.

No gateway is called: every payment is recorded as `completed`. Settlement is
per ticket, so paying an order only charges the tickets that are still
reserved.
"""
import logging
import secrets
import string
import time
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import AlreadyPaid, Forbidden, InvalidTransition, NotFound, PaymentExists, ValidationError, as_int
from app.models.order import Order
from app.models.payment import Payment, PAYMENT_METHODS
from app.models.screening import Screening
from app.models.ticket import Ticket, TicketStatus
from app.services import revalidation
from app.services.orders import ORDER_PAID, check_owner
from app.services.qr import generate_qr_code
from app.services.results import core_operation
from app.services.ticket_status import SETTLED_STATUSES, transition

logger = logging.getLogger(__name__)

PAYMENT_COMPLETED = "completed"

_TXN_ALPHABET = string.ascii_uppercase + string.digits


def generate_transaction_id() -> str:
    """Synthetic `TXN-<epoch ms>-<9 random chars>` reference."""
    suffix = "".join(secrets.choice(_TXN_ALPHABET) for _ in range(9))
    return f"TXN-{int(time.time() * 1000)}-{suffix}"


def _validate_method(method: str) -> str:
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"Unknown payment method '{method}', expected one of {', '.join(PAYMENT_METHODS)}"
        )
    return method


def _settle(db: Session, user_id: int, ticket: Ticket, amount: int, method: str, transaction_id: str) -> Payment:
    """Record a completed payment, mark the ticket paid and issue its QR payload."""
    payment = Payment(
        user_id=user_id,
        ticket_id=ticket.id,
        amount=amount,
        method=method,
        status=PAYMENT_COMPLETED,
        transaction_id=transaction_id,
    )
    db.add(payment)
    transition(db, ticket, TicketStatus.paid, reason="payment")
    generate_qr_code(db, ticket)
    return payment


def _flush_payments(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise PaymentExists("A payment for this ticket was recorded concurrently")


def _sync_order_status(order: Optional[Order]) -> None:
    if order is None:
        return
    live = [t for t in order.tickets if t.status != TicketStatus.cancelled]
    if live and all(t.status in SETTLED_STATUSES for t in live):
        order.status = ORDER_PAID


# ---------------------------------------------------------------------------
# Core operations
# ---------------------------------------------------------------------------


@core_operation("pay_for_ticket")
def pay_for_ticket(db: Session, user_id: int, ticket_id: int, amount: int, method: str):
    """Settle one ticket. Data: `{"payment": Payment, "qr_code": str}`."""
    if not user_id or not ticket_id or amount is None:
        raise ValidationError("user_id, ticket_id and a positive amount are required")
    amount = as_int(amount, "amount")
    if amount <= 0:
        raise ValidationError("user_id, ticket_id and a positive amount are required")
    _validate_method(method)

    ticket = (
        db.query(Ticket)
        .options(joinedload(Ticket.payment), joinedload(Ticket.order))
        .filter(Ticket.id == ticket_id)
        .first()
    )
    if not ticket:
        raise NotFound("Ticket not found")
    if ticket.user_id != user_id:
        raise Forbidden("This ticket belongs to another user")
    if ticket.status in SETTLED_STATUSES:
        raise AlreadyPaid("This ticket is already paid")
    if ticket.payment is not None:
        raise PaymentExists("A payment already exists for this ticket")
    if ticket.status == TicketStatus.cancelled:
        raise InvalidTransition("A cancelled ticket cannot be paid")

    payment = _settle(db, user_id, ticket, amount, method, generate_transaction_id())
    _flush_payments(db)
    _sync_order_status(ticket.order)
    db.commit()

    logger.info("Ticket %s paid by user %s (%s, %s)", ticket.id, user_id, amount, method)
    return {"payment": payment, "qr_code": ticket.qr_code}, revalidation.revalidate_paths(
        revalidation.TICKETS, revalidation.PAYMENT
    )


@core_operation("pay_for_order")
def pay_for_order(db: Session, user_id: int, order_id: int, method: str):
    """
    Settle every still-reserved ticket of an order.
    Data: `{"payments": [...], "qr_codes": [...], "tickets": [...], "order": Order}`.
    """
    if not user_id or not order_id:
        raise ValidationError("user_id and order_id are required")
    _validate_method(method)

    order = (
        db.query(Order)
        .options(
            joinedload(Order.tickets).joinedload(Ticket.payment),
            joinedload(Order.tickets).joinedload(Ticket.seat),
            joinedload(Order.tickets).joinedload(Ticket.screening).joinedload(Screening.movie),
        )
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")
    check_owner(order, user_id)

    pending = [t for t in order.tickets if t.status == TicketStatus.reserved]
    if not pending:
        if any(t.status in SETTLED_STATUSES for t in order.tickets):
            raise AlreadyPaid("Every ticket of this order is already paid")
        raise InvalidTransition("This order has no payable tickets")
    if any(t.payment is not None for t in pending):
        raise PaymentExists("Some tickets of this order already have a payment")

    order_txn = generate_transaction_id()
    payments, qr_codes = [], []
    for ticket in pending:
        payments.append(
            _settle(db, user_id, ticket, ticket.price, method, f"{order_txn}-{ticket.id}")
        )
        qr_codes.append(ticket.qr_code)
    _flush_payments(db)
    _sync_order_status(order)
    db.commit()

    logger.info(
        "Order %s: %d ticket(s) paid by user %s via %s (%s)",
        order.id, len(pending), user_id, method, order_txn,
    )
    return {
        "payments": payments,
        "qr_codes": qr_codes,
        "tickets": pending,
        "order": order,
    }, revalidation.revalidate_paths(
        revalidation.TICKETS, revalidation.PAYMENT, revalidation.CHECKOUT
    )


@core_operation("get_payment_by_ticket")
def get_payment_by_ticket(db: Session, ticket_id: int, user_id: Optional[int] = None):
    payment = (
        db.query(Payment)
        .options(joinedload(Payment.ticket).joinedload(Ticket.seat))
        .filter(Payment.ticket_id == ticket_id)
        .first()
    )
    if not payment:
        raise NotFound("Payment not found")
    if user_id is not None and payment.user_id != user_id:
        raise Forbidden("This payment belongs to another user")
    return payment, []
