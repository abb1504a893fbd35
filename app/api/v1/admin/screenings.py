from typing import List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.hall import Hall
from app.models.movie import Movie
from app.models.screening import Screening
from app.models.ticket import Ticket
from app.schemas.screening import ScreeningCreate, ScreeningUpdate, Screening as ScreeningSchema
from app.services import revalidation

router = APIRouter(prefix="/admin/screenings", tags=["Admin - Screenings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _find_overlap(
    db: Session,
    hall_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_id: Optional[int] = None,
) -> Optional[Screening]:
    """Another screening in the hall whose [start, end) range intersects ours."""
    query = db.query(Screening).filter(
        Screening.hall_id == hall_id,
        Screening.start_time < end_time,
        Screening.end_time > start_time,
    )
    if exclude_id is not None:
        query = query.filter(Screening.id != exclude_id)
    return query.first()


def _check_refs(db: Session, movie_id: int, hall_id: int) -> None:
    if not db.query(Movie.id).filter(Movie.id == movie_id).first():
        raise HTTPException(status_code=404, detail="Movie not found")
    if not db.query(Hall.id).filter(Hall.id == hall_id, Hall.is_active == True).first():  # noqa: E712
        raise HTTPException(status_code=404, detail="Hall not found")


def _load(db: Session, screening_id: int) -> Screening:
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
# Screening CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[ScreeningSchema])
def list_screenings(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Screening).options(joinedload(Screening.movie), joinedload(Screening.hall))
    if date_from:
        query = query.filter(Screening.start_time >= date_from)
    if date_to:
        query = query.filter(Screening.start_time <= date_to)
    return query.order_by(Screening.start_time).all()


@router.post("/", response_model=ScreeningSchema, status_code=status.HTTP_201_CREATED)
def create_screening(
    data: ScreeningCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    _check_refs(db, data.movie_id, data.hall_id)
    if _find_overlap(db, data.hall_id, data.start_time, data.end_time):
        raise HTTPException(status_code=409, detail="The hall is already booked for this time range")

    fields = data.model_dump()
    if fields["base_price"] is None:
        fields["base_price"] = settings.DEFAULT_BASE_PRICE
    screening = Screening(**fields)
    db.add(screening)
    db.commit()
    revalidation.revalidate_paths(revalidation.ADMIN_SCREENINGS, revalidation.SCHEDULE)
    return _load(db, screening.id)


@router.patch("/{screening_id}", response_model=ScreeningSchema)
def update_screening(
    screening_id: int,
    data: ScreeningUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Update a screening. Ticket prices are snapshots, so changing base_price
    only affects tickets booked afterwards.
    """
    screening = _load(db, screening_id)
    updates = data.model_dump(exclude_unset=True)

    movie_id = updates.get("movie_id", screening.movie_id)
    hall_id = updates.get("hall_id", screening.hall_id)
    start_time = updates.get("start_time", screening.start_time)
    end_time = updates.get("end_time", screening.end_time)
    if end_time <= start_time:
        raise HTTPException(status_code=400, detail="end_time must be later than start_time")
    _check_refs(db, movie_id, hall_id)
    if _find_overlap(db, hall_id, start_time, end_time, exclude_id=screening_id):
        raise HTTPException(status_code=409, detail="The hall is already booked for this time range")

    for field, value in updates.items():
        setattr(screening, field, value)
    db.commit()
    revalidation.revalidate_paths(revalidation.ADMIN_SCREENINGS, revalidation.SCHEDULE)
    return _load(db, screening_id)


@router.delete("/{screening_id}", status_code=status.HTTP_200_OK)
def delete_screening(
    screening_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    screening = _load(db, screening_id)
    if db.query(Ticket.id).filter(Ticket.screening_id == screening_id).first():
        raise HTTPException(
            status_code=409,
            detail="Tickets already exist for this screening, it cannot be deleted",
        )

    db.delete(screening)
    db.commit()
    revalidation.revalidate_paths(revalidation.ADMIN_SCREENINGS, revalidation.SCHEDULE)
    return {"id": screening_id, "deleted": True}
