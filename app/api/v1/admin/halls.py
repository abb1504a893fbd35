from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_current_admin_user
from app.models.user import User
from app.models.hall import Hall
from app.models.seat import Seat
from app.models.ticket import Ticket
from app.schemas.hall import HallCreate, HallUpdate, Hall as HallSchema
from app.schemas.seat import (
    SeatCreate,
    SeatUpdate,
    Seat as SeatSchema,
    SeatBulkCreate,
    SeatBulkCreateResponse,
)
from app.services import revalidation

hall_router = APIRouter(prefix="/admin/halls", tags=["Admin - Halls"])
seat_router = APIRouter(prefix="/admin/seats", tags=["Admin - Seats"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_hall(db: Session, hall_id: int) -> Hall:
    hall = db.query(Hall).filter(Hall.id == hall_id, Hall.is_active == True).first()  # noqa: E712
    if not hall:
        raise HTTPException(status_code=404, detail="Hall not found")
    return hall


def _sync_capacity(db: Session, hall: Hall) -> int:
    """Keep hall.capacity equal to its seat count."""
    db.flush()
    hall.capacity = db.query(Seat).filter(Seat.hall_id == hall.id).count()
    return hall.capacity


def _seat_exists(db: Session, hall_id: int, row: str, number: int, exclude_id: int = None) -> bool:
    query = db.query(Seat.id).filter(
        Seat.hall_id == hall_id, Seat.row == row, Seat.number == number
    )
    if exclude_id is not None:
        query = query.filter(Seat.id != exclude_id)
    return query.first() is not None


def _has_tickets(db: Session, seat_ids) -> bool:
    return db.query(Ticket.id).filter(Ticket.seat_id.in_(seat_ids)).first() is not None


# ---------------------------------------------------------------------------
# Hall CRUD
# ---------------------------------------------------------------------------


@hall_router.get("/", response_model=List[HallSchema])
def list_halls(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return db.query(Hall).filter(Hall.is_active == True).order_by(Hall.id).all()  # noqa: E712


@hall_router.post("/", response_model=HallSchema, status_code=status.HTTP_201_CREATED)
def create_hall(
    data: HallCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    hall = Hall(**data.model_dump(), capacity=0)
    db.add(hall)
    db.commit()
    db.refresh(hall)
    return hall


@hall_router.patch("/{hall_id}", response_model=HallSchema)
def update_hall(
    hall_id: int,
    data: HallUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    hall = _get_hall(db, hall_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(hall, field, value)
    db.commit()
    db.refresh(hall)
    return hall


# ---------------------------------------------------------------------------
# Seats in a hall
# ---------------------------------------------------------------------------


@hall_router.get("/{hall_id}/seats", response_model=List[SeatSchema])
def list_seats(
    hall_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    _get_hall(db, hall_id)
    return (
        db.query(Seat)
        .filter(Seat.hall_id == hall_id)
        .order_by(Seat.row, Seat.number)
        .all()
    )


@hall_router.post(
    "/{hall_id}/seats",
    response_model=SeatSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_seat(
    hall_id: int,
    data: SeatCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    hall = _get_hall(db, hall_id)
    if _seat_exists(db, hall_id, data.row, data.number):
        raise HTTPException(status_code=409, detail="Seat already exists in this hall")

    seat = Seat(hall_id=hall_id, **data.model_dump())
    db.add(seat)
    _sync_capacity(db, hall)
    db.commit()
    db.refresh(seat)
    revalidation.revalidate_paths(revalidation.ADMIN_SEATS, revalidation.BOOKING)
    return seat


@hall_router.post(
    "/{hall_id}/seats/bulk",
    response_model=SeatBulkCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def bulk_create_seats(
    hall_id: int,
    data: SeatBulkCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Create `seats_per_row` seats in each listed row, skipping ones that exist."""
    hall = _get_hall(db, hall_id)

    existing = {
        (row, number)
        for row, number in db.query(Seat.row, Seat.number).filter(Seat.hall_id == hall_id)
    }
    created = skipped = 0
    for row in data.rows:
        for number in range(1, data.seats_per_row + 1):
            if (row, number) in existing:
                skipped += 1
                continue
            db.add(Seat(hall_id=hall_id, row=row, number=number, seat_type=data.seat_type))
            created += 1

    capacity = _sync_capacity(db, hall)
    db.commit()
    revalidation.revalidate_paths(revalidation.ADMIN_SEATS, revalidation.BOOKING)
    return SeatBulkCreateResponse(
        created_count=created, skipped_count=skipped, hall_id=hall_id, capacity=capacity
    )


@hall_router.delete("/{hall_id}/seats", status_code=status.HTTP_200_OK)
def delete_all_seats(
    hall_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    hall = _get_hall(db, hall_id)
    seat_ids = [seat_id for (seat_id,) in db.query(Seat.id).filter(Seat.hall_id == hall_id)]
    if seat_ids and _has_tickets(db, seat_ids):
        raise HTTPException(status_code=409, detail="Seats with tickets cannot be deleted")

    deleted = db.query(Seat).filter(Seat.hall_id == hall_id).delete(synchronize_session="fetch")
    hall.capacity = 0
    db.commit()
    revalidation.revalidate_paths(revalidation.ADMIN_SEATS, revalidation.BOOKING)
    return {"hall_id": hall_id, "deleted_count": deleted}


# ---------------------------------------------------------------------------
# Update / delete a single seat
# ---------------------------------------------------------------------------


@seat_router.patch("/{seat_id}", response_model=SeatSchema)
def update_seat(
    seat_id: int,
    data: SeatUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    seat = db.query(Seat).filter(Seat.id == seat_id).first()
    if not seat:
        raise HTTPException(status_code=404, detail="Seat not found")

    updates = data.model_dump(exclude_unset=True)
    row = updates.get("row", seat.row)
    number = updates.get("number", seat.number)
    if _seat_exists(db, seat.hall_id, row, number, exclude_id=seat.id):
        raise HTTPException(status_code=409, detail="Seat already exists in this hall")

    for field, value in updates.items():
        setattr(seat, field, value)

    db.commit()
    db.refresh(seat)
    return seat


@seat_router.delete("/{seat_id}", status_code=status.HTTP_200_OK)
def delete_seat(
    seat_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    seat = db.query(Seat).filter(Seat.id == seat_id).first()
    if not seat:
        raise HTTPException(status_code=404, detail="Seat not found")
    if _has_tickets(db, [seat_id]):
        raise HTTPException(status_code=409, detail="Seats with tickets cannot be deleted")

    hall = seat.hall
    db.delete(seat)
    _sync_capacity(db, hall)
    db.commit()
    return {"id": seat_id, "deleted": True}
