from typing import Iterable, List

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.models.ticket import Ticket, ACTIVE_TICKET_STATUSES


class AvailabilityResult(BaseModel):
    available: bool
    conflicting: List[int] = []


def held_seat_ids(db: Session, screening_id: int, seat_ids: Iterable[int]) -> List[int]:
    """Seat ids from `seat_ids` held by a reserved, paid or used ticket."""
    wanted = set(seat_ids)
    if not wanted:
        return []
    rows = (
        db.query(Ticket.seat_id)
        .filter(
            Ticket.screening_id == screening_id,
            Ticket.seat_id.in_(wanted),
            Ticket.status.in_(ACTIVE_TICKET_STATUSES),
        )
        .distinct()
        .all()
    )
    return sorted(seat_id for (seat_id,) in rows)


def check_availability(db: Session, screening_id: int, seat_ids: Iterable[int]) -> AvailabilityResult:
    """
    Report which of `seat_ids` are already taken for a screening.

    Cancelled tickets never block. Duplicates in `seat_ids` are tolerated and
    every conflicting seat is reported once. A clean result is advisory only:
    the insert in `reservation` is the authoritative check.
    """
    conflicting = held_seat_ids(db, screening_id, seat_ids)
    return AvailabilityResult(available=not conflicting, conflicting=conflicting)
