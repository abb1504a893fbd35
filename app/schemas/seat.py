from typing import Annotated, Optional, List
from pydantic import BaseModel, Field

from app.models.seat import SeatType
from app.schemas.hall import HallSummary


# Seat: base fields
class SeatBase(BaseModel):
    row: Annotated[str, Field(min_length=1, max_length=5)]
    number: Annotated[int, Field(gt=0)]
    seat_type: SeatType = SeatType.standard


class SeatCreate(SeatBase):
    pass


class SeatUpdate(BaseModel):
    row: Optional[Annotated[str, Field(min_length=1, max_length=5)]] = None
    number: Optional[Annotated[int, Field(gt=0)]] = None
    seat_type: Optional[SeatType] = None


class Seat(SeatBase):
    id: int
    hall_id: int

    class Config:
        from_attributes = True


# Bulk seat creation (POST /admin/halls/{id}/seats/bulk): rows x seats_per_row
class SeatBulkCreate(BaseModel):
    rows: Annotated[List[str], Field(min_length=1)]
    seats_per_row: Annotated[int, Field(gt=0, le=100)]
    seat_type: SeatType = SeatType.standard


class SeatBulkCreateResponse(BaseModel):
    created_count: int
    skipped_count: int
    hall_id: int
    capacity: int


# --- Seat Map (user-facing seat selection) ---

class SeatState(BaseModel):
    id: int
    number: int
    seat_type: SeatType
    status: str  # available, reserved, paid, used


class SeatRow(BaseModel):
    label: str
    seats: List[SeatState]


class SeatMapResponse(BaseModel):
    screening_id: int
    base_price: int
    hall: HallSummary
    rows: List[SeatRow]


# --- Availability check ---

class AvailabilityRequest(BaseModel):
    seat_ids: Annotated[List[int], Field(min_length=1)]


class AvailabilityResponse(BaseModel):
    available: bool
    conflicting: List[int]
