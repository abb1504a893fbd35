import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session, joinedload

from app.core.errors import AlreadyPaid, Forbidden, NotFound, ValidationError, as_int
from app.models.order import Order, OrderItem
from app.models.product import Product
from app.models.screening import Screening
from app.models.ticket import Ticket, TicketStatus
from app.services import revalidation
from app.services.reservation import reserve
from app.services.results import core_operation
from app.services.ticket_status import SETTLED_STATUSES

logger = logging.getLogger(__name__)

ORDER_PENDING = "pending"
ORDER_PAID = "paid"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ProductLine:
    """A requested product line: product, quantity and optional seat scope."""

    __slots__ = ("product_id", "quantity", "seat_id")

    def __init__(self, product_id: int, quantity: int, seat_id: Optional[int] = None):
        self.product_id = product_id
        self.quantity = quantity
        self.seat_id = seat_id

    @classmethod
    def coerce(cls, item: Any) -> "ProductLine":
        if isinstance(item, cls):
            return item
        get = item.get if isinstance(item, Mapping) else lambda name: getattr(item, name, None)
        product_id, quantity = get("product_id"), get("quantity")
        if not product_id:
            raise ValidationError("Every product line needs a product_id")
        product_id = as_int(product_id, "product_id")
        quantity = None if quantity is None else as_int(quantity, "quantity")
        if quantity is None or quantity < 1:
            raise ValidationError(f"Product {product_id} needs a quantity of at least 1")
        seat_id = get("seat_id")
        return cls(product_id, quantity, as_int(seat_id, "seat_id") if seat_id else None)


def _existing_lines(db: Session, lines: Sequence[ProductLine]) -> List[ProductLine]:
    """Drop lines whose product id matches no product row at all."""
    product_ids = {line.product_id for line in lines}
    if not product_ids:
        return []
    existing = {
        product_id
        for (product_id,) in db.query(Product.id).filter(Product.id.in_(product_ids)).all()
    }
    for line in lines:
        if line.product_id not in existing:
            logger.warning("Product %s does not exist, line dropped", line.product_id)
    return [line for line in lines if line.product_id in existing]


def _active_prices(db: Session, lines: Sequence[ProductLine]) -> Dict[int, int]:
    """product_id -> current price, for active products only."""
    product_ids = {line.product_id for line in lines}
    if not product_ids:
        return {}
    products = (
        db.query(Product)
        .filter(Product.id.in_(product_ids), Product.is_active == True)  # noqa: E712
        .all()
    )
    return {p.id: p.price for p in products}


def products_total(prices: Mapping[int, int], lines: Iterable[ProductLine]) -> int:
    """
    Sum of price * quantity over `lines`. Products missing from `prices`
    (inactive ones) add nothing instead of failing the order.
    """
    return sum(prices.get(line.product_id, 0) * line.quantity for line in lines)


def _build_items(
    prices: Mapping[int, int],
    lines: Iterable[ProductLine],
    seat_to_ticket: Mapping[int, int],
) -> List[OrderItem]:
    items = []
    for line in lines:
        if line.product_id not in prices:
            logger.warning("Product %s is inactive, priced at 0", line.product_id)
        items.append(OrderItem(
            product_id=line.product_id,
            quantity=line.quantity,
            price=prices.get(line.product_id, 0),
            ticket_id=seat_to_ticket.get(line.seat_id) if line.seat_id else None,
        ))
    return items


def load_order(db: Session, order_id: int) -> Order:
    """Load an order with its tickets (screening, movie, hall, seat) and items."""
    order = (
        db.query(Order)
        .options(
            joinedload(Order.user),
            joinedload(Order.order_items).joinedload(OrderItem.product),
            joinedload(Order.tickets).joinedload(Ticket.screening).joinedload(Screening.movie),
            joinedload(Order.tickets).joinedload(Ticket.screening).joinedload(Screening.hall),
            joinedload(Order.tickets).joinedload(Ticket.seat),
            joinedload(Order.tickets).joinedload(Ticket.payment),
        )
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")
    return order


def check_owner(order: Order, user_id: Optional[int]) -> None:
    if user_id is not None and order.user_id != user_id:
        raise Forbidden("This order belongs to another user")


# ---------------------------------------------------------------------------
# Core operations
# ---------------------------------------------------------------------------


@core_operation("create_order")
def create_order(
    db: Session,
    user_id: int,
    screening_id: int,
    seat_ids: Sequence[int],
    products: Iterable[Any] = (),
):
    """
    Reserve `seat_ids` and bundle the tickets with product lines in one order.

    The total is computed here from the screening base price and the current
    active product prices. Reservation, order rows and the ticket back-links
    are committed together, so a failure leaves no tickets behind.
    """
    if not user_id or not screening_id or not seat_ids:
        raise ValidationError("user_id, screening_id and seat_ids are required")
    seat_ids = [as_int(s, "seat_id") for s in seat_ids]
    lines = [ProductLine.coerce(p) for p in products or []]
    stray = sorted({line.seat_id for line in lines if line.seat_id and line.seat_id not in seat_ids})
    if stray:
        raise ValidationError(f"Product lines reference seats {stray} outside this order")

    screening = db.query(Screening).filter(Screening.id == screening_id).first()
    if not screening:
        raise NotFound("Screening not found")

    lines = _existing_lines(db, lines)
    prices = _active_prices(db, lines)
    total_amount = len(seat_ids) * screening.base_price + products_total(prices, lines)

    tickets = reserve(
        db,
        user_id,
        screening_id,
        [{"seat_id": seat_id, "price": screening.base_price} for seat_id in seat_ids],
    )
    seat_to_ticket = {t.seat_id: t.id for t in tickets}

    order = Order(user_id=user_id, total_amount=total_amount, status=ORDER_PENDING)
    order.order_items = _build_items(prices, lines, seat_to_ticket)
    db.add(order)
    db.flush()

    db.query(Ticket).filter(Ticket.id.in_(list(seat_to_ticket.values()))).update(
        {"order_id": order.id}, synchronize_session="fetch"
    )
    db.commit()

    logger.info(
        "Order %s created for user %s: %d ticket(s), %d item(s), total %s",
        order.id, user_id, len(tickets), len(lines), total_amount,
    )
    return load_order(db, order.id), revalidation.revalidate_paths(
        revalidation.CHECKOUT, revalidation.TICKETS
    )


@core_operation("update_order_products")
def update_order_products(
    db: Session,
    order_id: int,
    products: Iterable[Any] = (),
    user_id: Optional[int] = None,
):
    """
    Replace every product line of an order and recompute its total from the
    ticket prices plus the new lines. Paid orders are frozen.
    """
    order = load_order(db, order_id)
    check_owner(order, user_id)
    if any(t.status in SETTLED_STATUSES for t in order.tickets):
        raise AlreadyPaid("Products cannot be changed after payment")

    lines = [ProductLine.coerce(p) for p in products or []]
    live_tickets = [t for t in order.tickets if t.status != TicketStatus.cancelled]
    seat_to_ticket = {t.seat_id: t.id for t in live_tickets}
    stray = sorted({line.seat_id for line in lines if line.seat_id and line.seat_id not in seat_to_ticket})
    if stray:
        raise ValidationError(f"Product lines reference seats {stray} outside this order")

    lines = _existing_lines(db, lines)
    prices = _active_prices(db, lines)
    tickets_price = sum(t.price for t in live_tickets)

    # Old lines are deleted as orphans when the collection is replaced
    order.order_items = _build_items(prices, lines, seat_to_ticket)
    order.total_amount = tickets_price + products_total(prices, lines)
    db.commit()

    logger.info("Order %s products replaced, total now %s", order.id, order.total_amount)
    return load_order(db, order.id), revalidation.revalidate_paths(
        revalidation.CHECKOUT, revalidation.TICKETS
    )


@core_operation("get_order")
def get_order(db: Session, order_id: int, user_id: Optional[int] = None):
    order = load_order(db, order_id)
    check_owner(order, user_id)
    return order, []


@core_operation("list_user_orders")
def list_user_orders(db: Session, user_id: int):
    orders = (
        db.query(Order)
        .options(
            joinedload(Order.order_items).joinedload(OrderItem.product),
            joinedload(Order.tickets).joinedload(Ticket.seat),
        )
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return orders, []
