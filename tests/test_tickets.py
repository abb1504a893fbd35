from app.models import TicketStatus, TicketStatusChange
from app.services import orders, payments, reservation, revalidation, tickets


def test_cancel_releases_the_seat(db, user, other_user, screening, seats):
    ticket = reservation.reserve_ticket(db, user.id, screening.id, seats["A1"].id, 2000).unwrap()

    cancelled = tickets.cancel_ticket(db, ticket.id, user_id=user.id)

    assert cancelled.data.status == TicketStatus.cancelled
    assert revalidation.BOOKING in cancelled.revalidated
    assert reservation.reserve_ticket(db, other_user.id, screening.id, seats["A1"].id, 2000).success


def test_cancel_twice_is_a_noop(db, user, screening, seats):
    ticket = reservation.reserve_ticket(db, user.id, screening.id, seats["A1"].id, 2000).unwrap()
    tickets.cancel_ticket(db, ticket.id).unwrap()

    again = tickets.cancel_ticket(db, ticket.id)

    assert again.success
    assert again.revalidated == []
    assert db.query(TicketStatusChange).filter_by(ticket_id=ticket.id).count() == 1


def test_used_ticket_cannot_be_cancelled(db, user, screening, seats):
    from app.services.checkin import mark_ticket_used

    order = orders.create_order(db, user.id, screening.id, [seats["A1"].id]).unwrap()
    payments.pay_for_order(db, user.id, order.id, "card").unwrap()
    ticket_id = order.tickets[0].id
    mark_ticket_used(db, ticket_id).unwrap()

    assert tickets.cancel_ticket(db, ticket_id).code == "invalid_transition"


def test_listings(db, user, other_user, screening, seats):
    mine = reservation.reserve_ticket(db, user.id, screening.id, seats["A1"].id, 2000).unwrap()
    reservation.reserve_ticket(db, other_user.id, screening.id, seats["A2"].id, 2000).unwrap()
    tickets.cancel_ticket(db, mine.id).unwrap()

    assert [t.id for t in tickets.get_user_tickets(db, user.id).unwrap()] == [mine.id]
    assert len(tickets.list_all_tickets(db).unwrap()) == 2
    cancelled = tickets.list_all_tickets(db, status=TicketStatus.cancelled).unwrap()
    assert [t.id for t in cancelled] == [mine.id]
    assert tickets.get_ticket(db, mine.id, user_id=other_user.id).code == "forbidden"


def test_failing_listener_does_not_fail_the_operation(db, user, screening, seats):
    def broken(paths):
        raise RuntimeError("cache is down")

    revalidation.add_listener(broken)
    try:
        result = reservation.reserve_ticket(db, user.id, screening.id, seats["A1"].id, 2000)
    finally:
        revalidation.remove_listener(broken)

    assert result.success
