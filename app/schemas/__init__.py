from app.schemas.common import PaginatedResponse, DashboardStats
from app.schemas.user import User, UserCreate, UserUpdate, UserSummary, Token
from app.schemas.movie import Movie, MovieCreate, MovieUpdate, MovieSummary
from app.schemas.hall import Hall, HallCreate, HallUpdate, HallSummary
from app.schemas.seat import (
    Seat, SeatCreate, SeatUpdate, SeatBulkCreate, SeatBulkCreateResponse,
    SeatMapResponse, AvailabilityRequest, AvailabilityResponse,
)
from app.schemas.screening import Screening, ScreeningCreate, ScreeningUpdate, ScreeningSummary
from app.schemas.product import Product, ProductCreate, ProductUpdate, ProductSummary
from app.schemas.ticket import Ticket, AdminTicket, TicketReserve, TicketBatchReserve
from app.schemas.order import Order, OrderCreate, OrderProductsUpdate, OrderProductLine
from app.schemas.payment import Payment, OrderPaymentCreate, TicketPaymentCreate
from app.schemas.scanner import ScanRequest, ScanResult
