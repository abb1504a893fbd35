import pytest

from app.models import TicketStatus
from app.services import checkin, orders, payments, reservation
from app.services.qr import parse_scan_code


@pytest.mark.parametrize(
    "code,expected",
    [
        ("ORDER-12", ("order", 12)),
        ("  TICKET-7\n", ("ticket", 7)),
        ("order-12", None),
        ("ORDER-", None),
        ("ORDER-12x", None),
        ("SEAT-3", None),
        ("", None),
    ],
)
def test_parse_scan_code(code, expected):
    assert parse_scan_code(code) == expected


@pytest.fixture
def paid_order(db, user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()
    payments.pay_for_order(db, user.id, order.id, "card").unwrap()
    return order


def test_box_office_flow(db, user, screening, seats):
    screening.base_price = 3000
    db.commit()

    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()
    assert order.total_amount == 3000
    (ticket,) = order.tickets
    assert ticket.status == TicketStatus.reserved

    payments.pay_for_order(db, user.id, order.id, "card").unwrap()
    db.refresh(ticket)
    assert ticket.status == TicketStatus.paid
    assert ticket.qr_code
    assert ticket.payment.status == "completed"

    resolved = checkin.resolve_scan_code(db, f"ORDER-{order.id}").unwrap()
    assert resolved["type"] == "order"
    assert resolved["entity"].id == order.id

    marked = checkin.mark_all_tickets_in_order_used(db, order.id).unwrap()
    assert marked == {"order_id": order.id, "marked": 1, "already_used": 0, "skipped": 0}
    db.refresh(ticket)
    assert ticket.status == TicketStatus.used

    again = checkin.mark_all_tickets_in_order_used(db, order.id).unwrap()
    assert again["marked"] == 0 and again["already_used"] == 1


def test_mark_ticket_used_is_idempotent(db, paid_order):
    ticket_id = paid_order.tickets[0].id

    first = checkin.mark_ticket_used(db, ticket_id).unwrap()
    second = checkin.mark_ticket_used(db, ticket_id).unwrap()

    assert first["changed"] is True
    assert second == {"ticket_id": ticket_id, "status": "used", "changed": False}
    assert checkin.resolve_scan_code(db, f"TICKET-{ticket_id}").unwrap()["type"] == "ticket"


def test_unpaid_ticket_cannot_be_used(db, user, screening, seats):
    ticket = reservation.reserve_ticket(db, user.id, screening.id, seats["A2"].id, 2000).unwrap()

    result = checkin.mark_ticket_used(db, ticket.id)

    assert result.code == "invalid_transition"
    db.refresh(ticket)
    assert ticket.status == TicketStatus.reserved


def test_unpaid_order_cannot_be_used(db, user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()
    assert checkin.mark_all_tickets_in_order_used(db, order.id).code == "invalid_transition"


def test_unknown_codes(db):
    assert checkin.resolve_scan_code(db, "hello").code == "validation_error"
    assert checkin.resolve_scan_code(db, "ORDER-404").code == "not_found"
    assert checkin.mark_ticket_used(db, 404).code == "not_found"
