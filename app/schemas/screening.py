from typing import Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime

from app.schemas.movie import MovieSummary
from app.schemas.hall import HallSummary


class ScreeningBase(BaseModel):
    movie_id: int
    hall_id: int
    start_time: datetime
    end_time: datetime


class ScreeningCreate(ScreeningBase):
    base_price: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self


class ScreeningUpdate(BaseModel):
    movie_id: Optional[int] = None
    hall_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    base_price: Optional[int] = Field(default=None, ge=0)


class Screening(ScreeningBase):
    id: int
    base_price: int
    movie: Optional[MovieSummary] = None
    hall: Optional[HallSummary] = None

    class Config:
        from_attributes = True


# Compact screening for nested responses (ticket, order)
class ScreeningSummary(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    base_price: int
    movie: Optional[MovieSummary] = None
    hall: Optional[HallSummary] = None

    class Config:
        from_attributes = True
