from app.models import Order, OrderItem, Ticket, TicketStatus
from app.services import orders, payments, revalidation


def test_total_is_computed_server_side(db, user, screening, seats, products):
    order = orders.create_order(
        db,
        user.id,
        screening.id,
        [seats["A1"].id, seats["A2"].id],
        [{"product_id": products["popcorn"].id, "quantity": 2}],
    ).unwrap()

    assert order.total_amount == 2 * 2000 + 2 * 500
    assert order.status == orders.ORDER_PENDING
    assert sorted(t.seat_id for t in order.tickets) == sorted([seats["A1"].id, seats["A2"].id])
    assert all(t.order_id == order.id and t.status == TicketStatus.reserved for t in order.tickets)
    assert [(i.product_id, i.quantity, i.price) for i in order.order_items] == [
        (products["popcorn"].id, 2, 500)
    ]


def test_inactive_products_cost_nothing_and_unknown_ones_are_dropped(db, user, screening, seats, products):
    order = orders.create_order(
        db,
        user.id,
        screening.id,
        [seats["A1"].id],
        [
            {"product_id": products["retired"].id, "quantity": 1},
            {"product_id": 12345, "quantity": 3},
        ],
    ).unwrap()

    assert order.total_amount == 2000
    assert [(i.product_id, i.price) for i in order.order_items] == [(products["retired"].id, 0)]


def test_seat_scoped_product_links_to_its_ticket(db, user, screening, seats, products):
    order = orders.create_order(
        db,
        user.id,
        screening.id,
        [seats["B1"].id, seats["B2"].id],
        [{"product_id": products["soda"].id, "quantity": 1, "seat_id": seats["B2"].id}],
    ).unwrap()

    (item,) = order.order_items
    ticket = next(t for t in order.tickets if t.id == item.ticket_id)
    assert ticket.seat_id == seats["B2"].id


def test_seat_conflict_leaves_nothing_behind(db, user, other_user, screening, seats):
    orders.create_order(db, other_user.id, screening.id, [seats["A1"].id]).unwrap()

    result = orders.create_order(db, user.id, screening.id, [seats["A1"].id, seats["A2"].id])

    assert result.code == "seat_conflict"
    assert result.details == {"conflicting": [seats["A1"].id]}
    assert db.query(Order).filter(Order.user_id == user.id).count() == 0
    assert db.query(Ticket).filter(Ticket.user_id == user.id).count() == 0


def test_product_line_for_a_seat_outside_the_order(db, user, screening, seats, products):
    result = orders.create_order(
        db,
        user.id,
        screening.id,
        [seats["A1"].id],
        [{"product_id": products["soda"].id, "quantity": 1, "seat_id": seats["A5"].id}],
    )
    assert result.code == "validation_error"


def test_create_order_signals_checkout_and_tickets(db, user, screening, seats):
    seen = []
    revalidation.add_listener(seen.append)
    try:
        result = orders.create_order(db, user.id, screening.id, [seats["A1"].id])
    finally:
        revalidation.remove_listener(seen.append)

    assert result.revalidated == [revalidation.CHECKOUT, revalidation.TICKETS]
    assert seen == [[revalidation.CHECKOUT, revalidation.TICKETS]]


def test_update_products_replaces_lines(db, user, screening, seats, products):
    order = orders.create_order(
        db,
        user.id,
        screening.id,
        [seats["A1"].id],
        [{"product_id": products["popcorn"].id, "quantity": 1}],
    ).unwrap()

    updated = orders.update_order_products(
        db,
        order.id,
        [{"product_id": products["soda"].id, "quantity": 3}],
        user_id=user.id,
    ).unwrap()

    assert updated.total_amount == 2000 + 3 * 300
    assert [(i.product_id, i.quantity) for i in updated.order_items] == [(products["soda"].id, 3)]
    assert db.query(OrderItem).count() == 1


def test_paid_order_is_frozen(db, user, screening, seats, products):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()
    payments.pay_for_order(db, user.id, order.id, "card").unwrap()

    result = orders.update_order_products(
        db, order.id, [{"product_id": products["soda"].id, "quantity": 1}], user_id=user.id
    )
    assert result.code == "already_paid"


def test_orders_are_private(db, user, other_user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()

    assert orders.get_order(db, order.id, user_id=other_user.id).code == "forbidden"
    assert orders.get_order(db, order.id).success
    assert orders.get_order(db, 9999).code == "not_found"


def test_non_numeric_quantity_is_a_validation_error(db, user, screening, seats, products):
    result = orders.create_order(
        db,
        user.id,
        screening.id,
        [seats["A1"].id],
        [{"product_id": products["popcorn"].id, "quantity": "two"}],
    )

    assert result.code == "validation_error"
    assert db.query(Ticket).count() == 0


def test_non_numeric_seat_id_is_a_validation_error(db, user, screening, seats):
    result = orders.create_order(db, user.id, screening.id, ["A1"])

    assert result.code == "validation_error"


def test_order_for_unknown_user(db, screening, seats):
    assert orders.create_order(db, 999, screening.id, [seats["A1"].id]).code == "not_found"
    assert db.query(Order).count() == 0
