from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.ticket import TicketStatus
from app.schemas.ticket import AdminTicket
from app.services import tickets

router = APIRouter(prefix="/admin/tickets", tags=["Admin - Tickets"])


@router.get("/", response_model=List[AdminTicket])
def list_tickets(
    status: Optional[TicketStatus] = Query(None),
    screening_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return tickets.list_all_tickets(db, status=status, screening_id=screening_id).unwrap()


@router.get("/unlinked", response_model=List[AdminTicket])
def list_unlinked(
    user_id: int = Query(...),
    screening_id: int = Query(...),
    seat_ids: List[int] = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Reservations that never made it into an order."""
    return tickets.list_unlinked_reservations(db, user_id, screening_id, seat_ids).unwrap()


@router.get("/{ticket_id}", response_model=AdminTicket)
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return tickets.get_ticket(db, ticket_id).unwrap()


@router.patch("/{ticket_id}/cancel", response_model=AdminTicket)
def cancel_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return tickets.cancel_ticket(db, ticket_id).unwrap()
