import logging

from sqlalchemy.orm import Session, joinedload

from app.core.errors import InvalidTransition, NotFound, ValidationError
from app.models.order import Order
from app.models.ticket import Ticket, TicketStatus
from app.services import revalidation
from app.services.orders import load_order
from app.services.qr import parse_scan_code
from app.services.reservation import load_ticket
from app.services.results import core_operation
from app.services.ticket_status import transition

logger = logging.getLogger(__name__)


@core_operation("resolve_scan_code")
def resolve_scan_code(db: Session, code: str):
    """
    Resolve `ORDER-<id>` or `TICKET-<id>`.
    Data: `{"type": "order" | "ticket", "entity": Order | Ticket}`.
    """
    parsed = parse_scan_code(code)
    if parsed is None:
        raise ValidationError("Invalid scan code")
    kind, entity_id = parsed
    entity = load_order(db, entity_id) if kind == "order" else load_ticket(db, entity_id)
    logger.info("Scan code %s resolved to %s %s", code.strip(), kind, entity_id)
    return {"type": kind, "entity": entity}, []


@core_operation("mark_ticket_used")
def mark_ticket_used(db: Session, ticket_id: int):
    """
    Check a paid ticket in. Re-checking a used ticket succeeds without side
    effects; reserved and cancelled tickets are refused.
    Data: `{"ticket_id", "status", "changed"}`.
    """
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise NotFound("Ticket not found")
    if ticket.status == TicketStatus.reserved:
        raise InvalidTransition("Ticket is not paid")

    changed = transition(db, ticket, TicketStatus.used, reason="check_in")
    db.commit()
    revalidated = []
    if changed:
        logger.info("Ticket %s checked in", ticket_id)
        revalidated = revalidation.revalidate_paths(
            revalidation.ADMIN_SCANNER, revalidation.ADMIN_TICKETS
        )
    return {"ticket_id": ticket_id, "status": TicketStatus.used.value, "changed": changed}, revalidated


@core_operation("mark_all_tickets_in_order_used")
def mark_all_tickets_in_order_used(db: Session, order_id: int):
    """
    Check in every paid ticket of an order, skipping the rest.
    Data: `{"order_id", "marked", "already_used", "skipped"}`.
    """
    order = (
        db.query(Order)
        .options(joinedload(Order.tickets))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")

    paid = [t for t in order.tickets if t.status == TicketStatus.paid]
    already_used = [t for t in order.tickets if t.status == TicketStatus.used]
    if not paid and not already_used:
        raise InvalidTransition("The order has no paid tickets")

    for ticket in paid:
        transition(db, ticket, TicketStatus.used, reason="check_in")
    db.commit()

    skipped = len(order.tickets) - len(paid) - len(already_used)
    revalidated = []
    if paid:
        logger.info("Order %s: %d ticket(s) checked in", order_id, len(paid))
        revalidated = revalidation.revalidate_paths(
            revalidation.ADMIN_SCANNER, revalidation.ADMIN_TICKETS
        )
    return {
        "order_id": order_id,
        "marked": len(paid),
        "already_used": len(already_used),
        "skipped": skipped,
    }, revalidated
