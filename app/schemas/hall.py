from typing import Optional
from pydantic import BaseModel


class HallBase(BaseModel):
    name: str
    screen_type: Optional[str] = None


class HallCreate(HallBase):
    pass


class HallUpdate(BaseModel):
    name: Optional[str] = None
    screen_type: Optional[str] = None
    is_active: Optional[bool] = None


class Hall(HallBase):
    id: int
    capacity: int
    is_active: bool

    class Config:
        from_attributes = True


# Compact hall for nested responses (screening, seat map)
class HallSummary(BaseModel):
    id: int
    name: str
    capacity: int

    class Config:
        from_attributes = True
