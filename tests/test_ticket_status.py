import pytest

from app.core.errors import InvalidTransition
from app.models import Ticket, TicketStatus, TicketStatusChange
from app.services.ticket_status import can_transition, transition

S = TicketStatus


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (S.reserved, S.paid, True),
        (S.reserved, S.cancelled, True),
        (S.paid, S.used, True),
        (S.paid, S.cancelled, True),
        (S.used, S.used, True),
        (S.cancelled, S.cancelled, True),
        (S.reserved, S.used, False),
        (S.reserved, S.reserved, False),
        (S.paid, S.reserved, False),
        (S.paid, S.paid, False),
        (S.used, S.paid, False),
        (S.used, S.cancelled, False),
        (S.cancelled, S.reserved, False),
        (S.cancelled, S.paid, False),
    ],
)
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.fixture
def ticket(db, user, screening, seats):
    ticket = Ticket(user_id=user.id, screening_id=screening.id, seat_id=seats["A1"].id, price=2000)
    db.add(ticket)
    db.commit()
    return ticket


def test_transition_records_history(db, ticket):
    assert transition(db, ticket, S.paid, reason="payment") is True
    assert transition(db, ticket, S.used, reason="check_in") is True
    db.commit()

    changes = db.query(TicketStatusChange).filter(TicketStatusChange.ticket_id == ticket.id).all()
    assert [(c.from_status, c.to_status, c.reason) for c in changes] == [
        (S.reserved, S.paid, "payment"),
        (S.paid, S.used, "check_in"),
    ]


def test_reapplying_a_terminal_status_is_a_noop(db, ticket):
    transition(db, ticket, S.cancelled)
    db.commit()

    assert transition(db, ticket, S.cancelled) is False
    db.commit()
    assert db.query(TicketStatusChange).count() == 1


def test_backward_transition_is_rejected(db, ticket):
    transition(db, ticket, S.paid)
    db.commit()

    with pytest.raises(InvalidTransition):
        transition(db, ticket, S.reserved)
    assert ticket.status == S.paid
