from typing import List, Optional
from datetime import datetime, date, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.models.movie import Movie
from app.models.screening import Screening
from app.models.seat import Seat
from app.models.ticket import Ticket, ACTIVE_TICKET_STATUSES
from app.models.product import Product
from app.schemas.movie import Movie as MovieSchema
from app.schemas.screening import Screening as ScreeningSchema
from app.schemas.product import Product as ProductSchema
from app.schemas.seat import (
    SeatMapResponse,
    SeatRow,
    SeatState,
    AvailabilityRequest,
    AvailabilityResponse,
)
from app.schemas.hall import HallSummary
from app.services.reservation import get_seat_availability

movies_router = APIRouter(prefix="/movies", tags=["Movies"])
screenings_router = APIRouter(prefix="/screenings", tags=["Screenings"])
products_router = APIRouter(prefix="/products", tags=["Products"])


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


@movies_router.get("/", response_model=List[MovieSchema])
def list_movies(db: Session = Depends(get_db)):
    return (
        db.query(Movie)
        .filter(Movie.is_active == True)  # noqa: E712
        .order_by(Movie.created_at.desc(), Movie.id.desc())
        .all()
    )


@movies_router.get("/{slug}", response_model=MovieSchema)
def get_movie(slug: str, db: Session = Depends(get_db)):
    movie = db.query(Movie).filter(Movie.slug == slug, Movie.is_active == True).first()  # noqa: E712
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@movies_router.get("/{movie_id}/screenings", response_model=List[ScreeningSchema])
def list_movie_screenings(movie_id: int, db: Session = Depends(get_db)):
    """Upcoming screenings of a movie, soonest first."""
    now = datetime.now(timezone.utc)
    return (
        db.query(Screening)
        .options(joinedload(Screening.movie), joinedload(Screening.hall))
        .filter(Screening.movie_id == movie_id, Screening.start_time >= now)
        .order_by(Screening.start_time)
        .all()
    )


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


@screenings_router.get("/", response_model=List[ScreeningSchema])
def list_screenings(
    day: Optional[date] = Query(None, description="Only screenings starting on this date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    query = db.query(Screening).options(
        joinedload(Screening.movie), joinedload(Screening.hall)
    )
    if day:
        start = datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc)
        query = query.filter(
            Screening.start_time >= start,
            Screening.start_time < start + timedelta(days=1),
        )
    return query.order_by(Screening.start_time).all()


@screenings_router.get("/{screening_id}", response_model=ScreeningSchema)
def get_screening(screening_id: int, db: Session = Depends(get_db)):
    screening = (
        db.query(Screening)
        .options(joinedload(Screening.movie), joinedload(Screening.hall))
        .filter(Screening.id == screening_id)
        .first()
    )
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")
    return screening


# ---------------------------------------------------------------------------
# Seat map (seat selection screen)
# ---------------------------------------------------------------------------


@screenings_router.get("/{screening_id}/seat-map", response_model=SeatMapResponse)
def get_seat_map(screening_id: int, db: Session = Depends(get_db)):
    """
    Seat map for a screening, grouped by row. A seat shows the status of the
    ticket holding it, or `available`. Anyone can view availability.
    """
    screening = (
        db.query(Screening)
        .options(joinedload(Screening.hall))
        .filter(Screening.id == screening_id)
        .first()
    )
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")

    seats = (
        db.query(Seat)
        .filter(Seat.hall_id == screening.hall_id)
        .order_by(Seat.row, Seat.number)
        .all()
    )

    # Build seat_id → holding ticket status lookup
    held = {
        seat_id: status
        for seat_id, status in db.query(Ticket.seat_id, Ticket.status).filter(
            Ticket.screening_id == screening_id,
            Ticket.status.in_(ACTIVE_TICKET_STATUSES),
        )
    }

    # Group seats by row
    rows_dict: dict[str, list] = {}
    for seat in seats:
        status = held.get(seat.id)
        rows_dict.setdefault(seat.row, []).append(SeatState(
            id=seat.id,
            number=seat.number,
            seat_type=seat.seat_type,
            status=status.value if status else "available",
        ))

    return SeatMapResponse(
        screening_id=screening.id,
        base_price=screening.base_price,
        hall=HallSummary.model_validate(screening.hall),
        rows=[SeatRow(label=label, seats=row_seats) for label, row_seats in rows_dict.items()],
    )


@screenings_router.post("/{screening_id}/availability", response_model=AvailabilityResponse)
def check_seats(screening_id: int, body: AvailabilityRequest, db: Session = Depends(get_db)):
    """Check whether the given seats are still free for this screening."""
    return get_seat_availability(db, screening_id, body.seat_ids).unwrap()


# ---------------------------------------------------------------------------
# Concessions
# ---------------------------------------------------------------------------


@products_router.get("/", response_model=List[ProductSchema])
def list_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db),
):
    query = db.query(Product).filter(Product.is_active == True)  # noqa: E712
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.category, Product.name).all()
