"""
Ticket status machine.

    reserved -> paid -> used
    reserved | paid -> cancelled

`used -> used` and `cancelled -> cancelled` are accepted no-ops. Everything
else, including any backward move, is rejected. `transition()` is the only
place that assigns `Ticket.status` after a ticket is created, and it records
every real change in `ticket_status_changes`.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import InvalidTransition
from app.models.ticket import Ticket, TicketStatus, TicketStatusChange

logger = logging.getLogger(__name__)

INITIAL_STATUS = TicketStatus.reserved

ALLOWED_TRANSITIONS = {
    TicketStatus.reserved: {TicketStatus.paid, TicketStatus.cancelled},
    TicketStatus.paid: {TicketStatus.used, TicketStatus.cancelled},
    TicketStatus.used: set(),
    TicketStatus.cancelled: set(),
}

# Re-applying these is a no-op rather than an error
IDEMPOTENT_STATUSES = {TicketStatus.used, TicketStatus.cancelled}

SETTLED_STATUSES = (TicketStatus.paid, TicketStatus.used)


def can_transition(current: TicketStatus, target: TicketStatus) -> bool:
    current, target = TicketStatus(current), TicketStatus(target)
    if current == target:
        return current in IDEMPOTENT_STATUSES
    return target in ALLOWED_TRANSITIONS[current]


def transition(
    db: Session,
    ticket: Ticket,
    target: TicketStatus,
    reason: Optional[str] = None,
) -> bool:
    """
    Move `ticket` to `target`. Returns True when the status changed and False
    for an idempotent re-application. Raises InvalidTransition otherwise.
    The caller owns the commit.
    """
    current = TicketStatus(ticket.status)
    target = TicketStatus(target)
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Ticket {ticket.id} cannot move from '{current.value}' to '{target.value}'"
        )
    if current == target:
        return False

    ticket.status = target
    db.add(TicketStatusChange(
        ticket_id=ticket.id,
        from_status=current,
        to_status=target,
        reason=reason,
    ))
    logger.info("Ticket %s: %s -> %s (%s)", ticket.id, current.value, target.value, reason or "-")
    return True
