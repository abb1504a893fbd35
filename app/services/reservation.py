import logging
from typing import Any, Iterable, List, Mapping, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.errors import NotFound, SeatConflict, ValidationError, as_int
from app.models.screening import Screening
from app.models.seat import Seat
from app.models.user import User
from app.models.ticket import Ticket, TicketStatus
from app.services import revalidation
from app.services.availability import check_availability, held_seat_ids
from app.services.results import core_operation
from app.services.ticket_status import INITIAL_STATUS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _field(item: Any, name: str):
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _normalize_seats(seats: Iterable[Any]) -> List[Tuple[int, int]]:
    """Turn `{seat_id, price}` items (dicts or objects) into (seat_id, price) pairs."""
    pairs = []
    for item in seats or []:
        seat_id, price = _field(item, "seat_id"), _field(item, "price")
        if not seat_id:
            raise ValidationError("Every seat needs a seat_id")
        seat_id = as_int(seat_id, "seat_id")
        price = None if price is None else as_int(price, "price")
        if price is None or price < 0:
            raise ValidationError(f"Seat {seat_id} needs a non-negative price")
        pairs.append((seat_id, price))
    return pairs


def _load_screening(db: Session, screening_id: int) -> Screening:
    screening = db.query(Screening).filter(Screening.id == screening_id).first()
    if not screening:
        raise NotFound("Screening not found")
    return screening


def _ensure_seats_in_hall(db: Session, screening: Screening, seat_ids: Sequence[int]) -> None:
    found = {
        seat_id
        for (seat_id,) in db.query(Seat.id)
        .filter(Seat.id.in_(seat_ids), Seat.hall_id == screening.hall_id)
        .all()
    }
    missing = sorted(set(seat_ids) - found)
    if missing:
        raise ValidationError(
            f"Seats {missing} do not belong to the hall of screening {screening.id}"
        )


# ---------------------------------------------------------------------------
# Reservation
# ---------------------------------------------------------------------------


def reserve(db: Session, user_id: int, screening_id: int, seats: Iterable[Any]) -> List[Ticket]:
    """
    Insert one `reserved` ticket per seat, all or nothing, and flush so the
    new ids are available. The caller owns the commit.

    Raises ValidationError, NotFound or SeatConflict. A unique-index collision
    at insert time (a concurrent booker won the race after the availability
    check) rolls the session back and is reported as SeatConflict.
    """
    if not user_id or not screening_id:
        raise ValidationError("user_id and screening_id are required")
    pairs = _normalize_seats(seats)
    if not pairs:
        raise ValidationError("At least one seat is required")
    if len(pairs) > settings.MAX_SEATS_PER_ORDER:
        raise ValidationError(
            f"At most {settings.MAX_SEATS_PER_ORDER} seats can be reserved at once"
        )
    seat_ids = [seat_id for seat_id, _ in pairs]
    if len(set(seat_ids)) != len(seat_ids):
        raise ValidationError("The same seat was requested more than once")

    if not db.query(User.id).filter(User.id == user_id).first():
        raise NotFound("User not found")
    screening = _load_screening(db, screening_id)
    _ensure_seats_in_hall(db, screening, seat_ids)

    availability = check_availability(db, screening_id, seat_ids)
    if not availability.available:
        raise SeatConflict("Some seats are already taken", availability.conflicting)

    tickets = [
        Ticket(
            user_id=user_id,
            screening_id=screening_id,
            seat_id=seat_id,
            price=price,
            status=INITIAL_STATUS,
            order_id=None,
        )
        for seat_id, price in pairs
    ]
    db.add_all(tickets)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        conflicting = held_seat_ids(db, screening_id, seat_ids)
        if not conflicting:
            raise
        logger.warning(
            "Seat race lost for screening %s: seats %s", screening_id, conflicting
        )
        raise SeatConflict("Some seats were taken by another booking", conflicting)

    logger.info(
        "Reserved %d seat(s) %s for user %s, screening %s",
        len(tickets), seat_ids, user_id, screening_id,
    )
    return tickets


def find_unlinked_reservations(
    db: Session, user_id: int, screening_id: int, seat_ids: Sequence[int]
) -> List[Ticket]:
    """
    Reserved tickets of a user for `seat_ids` that no order links yet, newest
    first and bounded by the number of seats asked for. Ids break ties between
    equal creation timestamps.
    """
    seat_ids = list(dict.fromkeys(seat_ids))
    if not seat_ids:
        return []
    return (
        db.query(Ticket)
        .filter(
            Ticket.user_id == user_id,
            Ticket.screening_id == screening_id,
            Ticket.seat_id.in_(seat_ids),
            Ticket.status == TicketStatus.reserved,
            Ticket.order_id.is_(None),
        )
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .limit(len(seat_ids))
        .all()
    )


def load_ticket(db: Session, ticket_id: int) -> Ticket:
    """Load a ticket with screening (movie, hall), seat, payment and order items."""
    ticket = (
        db.query(Ticket)
        .options(
            joinedload(Ticket.screening).joinedload(Screening.movie),
            joinedload(Ticket.screening).joinedload(Screening.hall),
            joinedload(Ticket.seat),
            joinedload(Ticket.payment),
            joinedload(Ticket.user),
        )
        .filter(Ticket.id == ticket_id)
        .first()
    )
    if not ticket:
        raise NotFound("Ticket not found")
    return ticket


# ---------------------------------------------------------------------------
# Core operations
# ---------------------------------------------------------------------------


@core_operation("reserve_tickets")
def reserve_tickets(db: Session, user_id: int, screening_id: int, seats: Iterable[Any]):
    """Reserve several seats at once. Data: `{"ticket_ids": [...]}`."""
    tickets = reserve(db, user_id, screening_id, seats)
    ticket_ids = [t.id for t in tickets]
    db.commit()
    return {"ticket_ids": ticket_ids}, revalidation.revalidate_paths(
        revalidation.TICKETS, revalidation.BOOKING
    )


@core_operation("reserve_ticket")
def reserve_ticket(db: Session, user_id: int, screening_id: int, seat_id: int, price: int):
    """Reserve a single seat. Data: the ticket with screening and seat loaded."""
    (ticket,) = reserve(db, user_id, screening_id, [{"seat_id": seat_id, "price": price}])
    db.commit()
    return load_ticket(db, ticket.id), revalidation.revalidate_paths(
        revalidation.TICKETS, revalidation.BOOKING
    )


@core_operation("check_availability")
def get_seat_availability(db: Session, screening_id: int, seat_ids: Sequence[int]):
    """Data: `{"available": bool, "conflicting": [...]}`."""
    if not seat_ids:
        raise ValidationError("At least one seat is required")
    _load_screening(db, screening_id)
    result = check_availability(db, screening_id, seat_ids)
    return {"available": result.available, "conflicting": result.conflicting}, []
