from app.db.session import Base
from app.models.user import User
from app.models.movie import Movie
from app.models.hall import Hall
from app.models.seat import Seat
from app.models.screening import Screening
from app.models.product import Product
from app.models.ticket import Ticket, TicketStatusChange
from app.models.order import Order, OrderItem
from app.models.payment import Payment
