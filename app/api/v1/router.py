from fastapi import APIRouter

# Auth
from app.api.v1.public.auth import router as auth_router

# Public: catalog, schedule, seat map
from app.api.v1.public.screenings import (
    movies_router,
    screenings_router,
    products_router,
)

# Public: tickets, orders, payments
from app.api.v1.public.tickets import router as tickets_router
from app.api.v1.public.orders import router as orders_router, payments_router

# Public: user profile
from app.api.v1.public.me import router as me_router

# Admin
from app.api.v1.admin.movies import router as admin_movies_router
from app.api.v1.admin.halls import hall_router, seat_router
from app.api.v1.admin.screenings import router as admin_screenings_router
from app.api.v1.admin.products import router as admin_products_router
from app.api.v1.admin.tickets import router as admin_tickets_router
from app.api.v1.admin.scanner import router as scanner_router
from app.api.v1.admin.users import router as admin_users_router
from app.api.v1.admin.dashboard import router as dashboard_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: catalog ---
api_router.include_router(movies_router)
api_router.include_router(screenings_router)
api_router.include_router(products_router)

# --- Public: booking flow ---
api_router.include_router(tickets_router)
api_router.include_router(orders_router)
api_router.include_router(payments_router)

# --- Public: profile ---
api_router.include_router(me_router)

# --- Admin ---
api_router.include_router(admin_movies_router)
api_router.include_router(hall_router)
api_router.include_router(seat_router)
api_router.include_router(admin_screenings_router)
api_router.include_router(admin_products_router)
api_router.include_router(admin_tickets_router)
api_router.include_router(scanner_router)
api_router.include_router(admin_users_router)
api_router.include_router(dashboard_router)
