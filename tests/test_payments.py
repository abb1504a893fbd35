import re

from app.models import Order, Payment, TicketStatus
from app.services import orders, payments, reservation
from app.services.qr import parse_ticket_payload


def _reserve(db, user, screening, seat, price=2000):
    return reservation.reserve_ticket(db, user.id, screening.id, seat.id, price).unwrap()


def test_transaction_id_format():
    assert re.fullmatch(r"TXN-\d{13}-[A-Z0-9]{9}", payments.generate_transaction_id())


def test_pay_for_ticket(db, user, screening, seats):
    ticket = _reserve(db, user, screening, seats["A1"])

    settled = payments.pay_for_ticket(db, user.id, ticket.id, 2000, "card").unwrap()

    db.refresh(ticket)
    assert ticket.status == TicketStatus.paid
    assert settled["payment"].status == "completed"
    assert settled["payment"].amount == 2000
    assert parse_ticket_payload(settled["qr_code"])["ticketId"] == ticket.id
    assert ticket.qr_code == settled["qr_code"]


def test_a_ticket_is_paid_once(db, user, screening, seats):
    ticket = _reserve(db, user, screening, seats["A1"])
    payments.pay_for_ticket(db, user.id, ticket.id, 2000, "card").unwrap()

    result = payments.pay_for_ticket(db, user.id, ticket.id, 2000, "cash")

    assert result.code == "already_paid"
    assert db.query(Payment).filter(Payment.ticket_id == ticket.id).count() == 1


def test_pay_for_ticket_checks(db, user, other_user, screening, seats):
    ticket = _reserve(db, user, screening, seats["A1"])

    assert payments.pay_for_ticket(db, other_user.id, ticket.id, 2000, "card").code == "forbidden"
    assert payments.pay_for_ticket(db, user.id, ticket.id, 0, "card").code == "validation_error"
    assert payments.pay_for_ticket(db, user.id, ticket.id, 2000, "bitcoin").code == "validation_error"
    assert payments.pay_for_ticket(db, user.id, 9999, 2000, "card").code == "not_found"


def test_cancelled_ticket_cannot_be_paid(db, user, screening, seats):
    from app.services.tickets import cancel_ticket

    ticket = _reserve(db, user, screening, seats["A1"])
    cancel_ticket(db, ticket.id, user_id=user.id).unwrap()

    assert payments.pay_for_ticket(db, user.id, ticket.id, 2000, "card").code == "invalid_transition"


def test_pay_for_order_settles_every_reserved_ticket(db, user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id, seats["A2"].id]).unwrap()

    settled = payments.pay_for_order(db, user.id, order.id, "bank_transfer").unwrap()

    assert len(settled["payments"]) == 2
    assert len(set(p.transaction_id for p in settled["payments"])) == 2
    assert all(code for code in settled["qr_codes"])
    db.refresh(order)
    assert order.status == orders.ORDER_PAID
    assert {t.status for t in order.tickets} == {TicketStatus.paid}


def test_pay_for_order_skips_tickets_paid_individually(db, user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id, seats["A2"].id]).unwrap()
    first = min(order.tickets, key=lambda t: t.id)
    payments.pay_for_ticket(db, user.id, first.id, 2000, "card").unwrap()

    settled = payments.pay_for_order(db, user.id, order.id, "card").unwrap()

    assert [p.ticket_id for p in settled["payments"]] == [
        t.id for t in order.tickets if t.id != first.id
    ]
    assert db.query(Payment).count() == 2
    assert db.get(Order, order.id).status == orders.ORDER_PAID


def test_paying_a_paid_order_again(db, user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()
    payments.pay_for_order(db, user.id, order.id, "card").unwrap()

    assert payments.pay_for_order(db, user.id, order.id, "card").code == "already_paid"


def test_order_of_someone_else(db, user, other_user, screening, seats):
    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()

    assert payments.pay_for_order(db, other_user.id, order.id, "card").code == "forbidden"


def test_payment_lookup(db, user, other_user, screening, seats):
    ticket = _reserve(db, user, screening, seats["A1"])
    assert payments.get_payment_by_ticket(db, ticket.id).code == "not_found"

    payments.pay_for_ticket(db, user.id, ticket.id, 2000, "card").unwrap()

    assert payments.get_payment_by_ticket(db, ticket.id, user_id=user.id).unwrap().ticket_id == ticket.id
    assert payments.get_payment_by_ticket(db, ticket.id, user_id=other_user.id).code == "forbidden"


def test_non_numeric_amount_is_a_validation_error(db, user, screening, seats):
    ticket = _reserve(db, user, screening, seats["A1"])

    result = payments.pay_for_ticket(db, user.id, ticket.id, "lots", "card")

    assert result.code == "validation_error"
    assert db.query(Payment).count() == 0
