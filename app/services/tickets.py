import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from app.core.errors import Forbidden, NotFound
from app.models.order import OrderItem
from app.models.screening import Screening
from app.models.ticket import Ticket, TicketStatus
from app.services import revalidation
from app.services.reservation import find_unlinked_reservations, load_ticket
from app.services.results import core_operation
from app.services.ticket_status import transition

logger = logging.getLogger(__name__)


def _ticket_graph_query(db: Session):
    return db.query(Ticket).options(
        joinedload(Ticket.screening).joinedload(Screening.movie),
        joinedload(Ticket.screening).joinedload(Screening.hall),
        joinedload(Ticket.seat),
        joinedload(Ticket.payment),
        joinedload(Ticket.order_items).joinedload(OrderItem.product),
    )


@core_operation("get_user_tickets")
def get_user_tickets(db: Session, user_id: int):
    """A user's tickets, latest screening first."""
    tickets = (
        _ticket_graph_query(db)
        .join(Screening, Screening.id == Ticket.screening_id)
        .filter(Ticket.user_id == user_id)
        .order_by(Screening.start_time.desc(), Ticket.id.desc())
        .all()
    )
    return tickets, []


@core_operation("get_ticket")
def get_ticket(db: Session, ticket_id: int, user_id: Optional[int] = None):
    ticket = load_ticket(db, ticket_id)
    if user_id is not None and ticket.user_id != user_id:
        raise Forbidden("This ticket belongs to another user")
    return ticket, []


@core_operation("list_all_tickets")
def list_all_tickets(db: Session, status: Optional[TicketStatus] = None, screening_id: Optional[int] = None):
    query = _ticket_graph_query(db).options(joinedload(Ticket.user))
    if status:
        query = query.filter(Ticket.status == status)
    if screening_id:
        query = query.filter(Ticket.screening_id == screening_id)
    return query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all(), []


@core_operation("list_unlinked_reservations")
def list_unlinked_reservations(db: Session, user_id: int, screening_id: int, seat_ids: Sequence[int]):
    """Reserved tickets of a user that no order references, newest first."""
    return find_unlinked_reservations(db, user_id, screening_id, seat_ids), []


@core_operation("cancel_ticket")
def cancel_ticket(db: Session, ticket_id: int, user_id: Optional[int] = None):
    """
    Void a reserved or paid ticket, freeing its seat. `user_id` restricts the
    call to the owner; admins pass None. Cancelling twice is a no-op.
    """
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise NotFound("Ticket not found")
    if user_id is not None and ticket.user_id != user_id:
        raise Forbidden("This ticket belongs to another user")

    changed = transition(db, ticket, TicketStatus.cancelled, reason="cancellation")
    db.commit()
    revalidated = []
    if changed:
        logger.info("Ticket %s cancelled, seat %s released", ticket.id, ticket.seat_id)
        revalidated = revalidation.revalidate_paths(
            revalidation.TICKETS, revalidation.BOOKING, revalidation.ADMIN_TICKETS
        )
    return load_ticket(db, ticket_id), revalidated
