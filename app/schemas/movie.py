from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class MovieBase(BaseModel):
    title: str
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    genre: Optional[str] = None
    image_url: Optional[str] = None


class MovieCreate(MovieBase):
    slug: Optional[str] = None


class MovieUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    genre: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class Movie(MovieBase):
    id: int
    slug: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Compact movie for nested responses (screening, ticket)
class MovieSummary(BaseModel):
    id: int
    title: str
    image_url: Optional[str] = None
    duration_minutes: int

    class Config:
        from_attributes = True
