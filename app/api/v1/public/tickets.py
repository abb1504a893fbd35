from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.models.screening import Screening
from app.schemas.ticket import (
    Ticket as TicketSchema,
    TicketReserve,
    TicketBatchReserve,
    TicketBatchReserveResponse,
)
from app.schemas.payment import Payment as PaymentSchema
from app.services import payments, reservation, tickets

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def _base_price(db: Session, screening_id: int) -> int:
    """Ticket price is the screening's base price, captured at booking time."""
    screening = db.query(Screening).filter(Screening.id == screening_id).first()
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")
    return screening.base_price


# ---------------------------------------------------------------------------
# POST /tickets: reserve seats without an order
# ---------------------------------------------------------------------------


@router.post("/", response_model=TicketSchema, status_code=status.HTTP_201_CREATED)
def reserve_ticket(
    data: TicketReserve,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    price = _base_price(db, data.screening_id)
    return reservation.reserve_ticket(
        db, current_user.id, data.screening_id, data.seat_id, price
    ).unwrap()


@router.post("/batch", response_model=TicketBatchReserveResponse, status_code=status.HTTP_201_CREATED)
def reserve_tickets(
    data: TicketBatchReserve,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Reserve several seats at once. Either every seat is reserved or none is."""
    price = _base_price(db, data.screening_id)
    seats = [{"seat_id": seat_id, "price": price} for seat_id in data.seat_ids]
    return reservation.reserve_tickets(db, current_user.id, data.screening_id, seats).unwrap()


# ---------------------------------------------------------------------------
# GET /tickets: current user's tickets
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[TicketSchema])
def list_my_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return tickets.get_user_tickets(db, current_user.id).unwrap()


@router.get("/{ticket_id}", response_model=TicketSchema)
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return tickets.get_ticket(db, ticket_id, user_id=current_user.id).unwrap()


@router.get("/{ticket_id}/payment", response_model=PaymentSchema)
def get_ticket_payment(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payments.get_payment_by_ticket(db, ticket_id, user_id=current_user.id).unwrap()


# ---------------------------------------------------------------------------
# PATCH /tickets/{id}/cancel
# ---------------------------------------------------------------------------


@router.patch("/{ticket_id}/cancel", response_model=TicketSchema)
def cancel_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Cancel one of your tickets and release its seat."""
    return tickets.cancel_ticket(db, ticket_id, user_id=current_user.id).unwrap()
