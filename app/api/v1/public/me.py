from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.models.screening import Screening
from app.models.ticket import Ticket, TicketStatus
from app.schemas.user import User as UserSchema, UserUpdate
from app.schemas.ticket import Ticket as TicketSchema

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/", response_model=UserSchema)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.get("/upcoming", response_model=List[TicketSchema])
def upcoming_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Paid tickets for screenings that have not started yet, soonest first."""
    now = datetime.now(timezone.utc)
    return (
        db.query(Ticket)
        .join(Screening, Screening.id == Ticket.screening_id)
        .options(
            joinedload(Ticket.screening).joinedload(Screening.movie),
            joinedload(Ticket.screening).joinedload(Screening.hall),
            joinedload(Ticket.seat),
        )
        .filter(
            Ticket.user_id == current_user.id,
            Ticket.status == TicketStatus.paid,
            Screening.start_time > now,
        )
        .order_by(Screening.start_time, Ticket.id)
        .all()
    )
