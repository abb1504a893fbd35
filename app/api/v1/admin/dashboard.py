from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.movie import Movie
from app.models.order import Order
from app.models.payment import Payment
from app.models.screening import Screening
from app.models.ticket import Ticket
from app.schemas.common import DashboardStats, TicketStatusStats

router = APIRouter(prefix="/admin/dashboard", tags=["Admin - Dashboard"])


@router.get("/", response_model=DashboardStats)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Headline counts for the admin home page. Revenue counts completed payments only."""
    now = datetime.now(timezone.utc)

    revenue = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.status == "completed")
        .scalar()
    )
    by_status = dict(
        db.query(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).all()
    )

    return DashboardStats(
        total_movies=db.query(Movie).count(),
        total_screenings=db.query(Screening).count(),
        upcoming_screenings=db.query(Screening).filter(Screening.start_time > now).count(),
        total_orders=db.query(Order).count(),
        total_revenue=int(revenue or 0),
        total_users=db.query(User).count(),
        tickets=TicketStatusStats(**{status.value: count for status, count in by_status.items()}),
    )
