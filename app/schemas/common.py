from typing import List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper for list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Admin dashboard
class TicketStatusStats(BaseModel):
    reserved: int = 0
    paid: int = 0
    used: int = 0
    cancelled: int = 0


class DashboardStats(BaseModel):
    total_movies: int
    total_screenings: int
    upcoming_screenings: int
    total_orders: int
    total_revenue: int
    total_users: int
    tickets: TicketStatusStats
