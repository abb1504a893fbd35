from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base import Base
from app.models import Hall, Movie, Screening, Seat, Ticket, TicketStatus, User
from app.services import reservation, revalidation
from app.services.availability import AvailabilityResult, check_availability


def _seat_list(*seats, price=2000):
    return [{"seat_id": seat.id, "price": price} for seat in seats]


def test_reserve_tickets_creates_reserved_unlinked_tickets(db, user, screening, seats):
    result = reservation.reserve_tickets(
        db, user.id, screening.id, _seat_list(seats["A1"], seats["A2"])
    )

    assert result.success
    assert result.revalidated == [revalidation.TICKETS, revalidation.BOOKING]
    tickets = db.query(Ticket).filter(Ticket.id.in_(result.data["ticket_ids"])).all()
    assert len(tickets) == 2
    assert {t.status for t in tickets} == {TicketStatus.reserved}
    assert all(t.order_id is None and t.price == 2000 for t in tickets)


def test_batch_is_all_or_nothing(db, user, other_user, screening, seats):
    assert reservation.reserve_tickets(db, other_user.id, screening.id, _seat_list(seats["A2"])).success

    result = reservation.reserve_tickets(
        db, user.id, screening.id, _seat_list(seats["A1"], seats["A2"], seats["A3"])
    )

    assert not result.success
    assert result.code == "seat_conflict"
    assert result.details == {"conflicting": [seats["A2"].id]}
    assert db.query(Ticket).filter(Ticket.user_id == user.id).count() == 0


def test_lost_race_is_reported_as_conflict(db, user, other_user, screening, seats, monkeypatch):
    # The competing ticket lands between the availability check and the insert
    assert reservation.reserve_tickets(db, other_user.id, screening.id, _seat_list(seats["B1"])).success
    monkeypatch.setattr(
        reservation, "check_availability", lambda *args: AvailabilityResult(available=True)
    )

    result = reservation.reserve_tickets(
        db, user.id, screening.id, _seat_list(seats["B1"], seats["B2"])
    )

    assert not result.success
    assert result.code == "seat_conflict"
    assert result.details["conflicting"] == [seats["B1"].id]
    assert db.query(Ticket).filter(Ticket.user_id == user.id).count() == 0


def test_cancelled_ticket_frees_the_seat(db, user, other_user, screening, seats):
    first = reservation.reserve_ticket(db, other_user.id, screening.id, seats["A1"].id, 2000).unwrap()
    first.status = TicketStatus.cancelled
    db.commit()

    assert check_availability(db, screening.id, [seats["A1"].id]).available
    assert reservation.reserve_ticket(db, user.id, screening.id, seats["A1"].id, 2000).success


@pytest.mark.parametrize(
    "seat_list,code",
    [
        ([], "validation_error"),
        ([{"seat_id": None, "price": 2000}], "validation_error"),
        ([{"seat_id": 1, "price": -5}], "validation_error"),
        ([{"seat_id": 1, "price": 2000}, {"seat_id": 1, "price": 2000}], "validation_error"),
    ],
)
def test_invalid_input_is_rejected(db, user, screening, seats, seat_list, code):
    result = reservation.reserve_tickets(db, user.id, screening.id, seat_list)
    assert not result.success
    assert result.code == code


def test_too_many_seats(db, user, screening, seats, monkeypatch):
    monkeypatch.setattr(settings, "MAX_SEATS_PER_ORDER", 2)
    result = reservation.reserve_tickets(
        db, user.id, screening.id, _seat_list(seats["A1"], seats["A2"], seats["A3"])
    )
    assert result.code == "validation_error"


def test_unknown_screening(db, user, seats):
    result = reservation.reserve_tickets(db, user.id, 999, _seat_list(seats["A1"]))
    assert result.code == "not_found"


def test_seat_from_another_hall(db, user, screening, seats):
    result = reservation.reserve_tickets(db, user.id, screening.id, [{"seat_id": 999, "price": 2000}])
    assert result.code == "validation_error"


def test_availability_reports_each_conflict_once(db, user, screening, seats):
    reservation.reserve_tickets(db, user.id, screening.id, _seat_list(seats["A1"], seats["A3"]))

    result = reservation.get_seat_availability(
        db, screening.id, [seats["A3"].id, seats["A1"].id, seats["A1"].id, seats["A2"].id]
    ).unwrap()

    assert result == {"available": False, "conflicting": [seats["A1"].id, seats["A3"].id]}


def test_find_unlinked_reservations_newest_first(db, user, screening, seats):
    ids = reservation.reserve_tickets(
        db, user.id, screening.id, _seat_list(seats["A1"], seats["A2"])
    ).unwrap()["ticket_ids"]

    found = reservation.find_unlinked_reservations(
        db, user.id, screening.id, [seats["A1"].id, seats["A2"].id]
    )

    assert [t.id for t in found] == sorted(ids, reverse=True)


@pytest.mark.parametrize(
    "seat_list",
    [
        [{"seat_id": "A1", "price": 2000}],
        [{"seat_id": 1, "price": "free"}],
        [{"seat_id": [1], "price": 2000}],
    ],
)
def test_non_numeric_input_is_a_validation_error(db, user, screening, seats, seat_list):
    result = reservation.reserve_tickets(db, user.id, screening.id, seat_list)

    assert not result.success
    assert result.code == "validation_error"


def test_unknown_user(db, screening, seats):
    result = reservation.reserve_tickets(db, 999, screening.id, _seat_list(seats["A1"]))

    assert result.code == "not_found"
    assert db.query(Ticket).count() == 0


@pytest.fixture
def file_sessions(tmp_path):
    """Independent sessions on a file database, one connection each."""
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    make_session = sessionmaker(bind=engine, autoflush=False)
    try:
        yield make_session
    finally:
        engine.dispose()


def test_two_sessions_racing_for_one_seat(file_sessions, monkeypatch):
    with file_sessions() as setup:
        alice = User(email="alice@example.com", password_hash="x", full_name="Alice")
        bob = User(email="bob@example.com", password_hash="x", full_name="Bob")
        movie = Movie(title="Heat", slug="heat", duration_minutes=170)
        hall = Hall(name="Hall 3", capacity=1)
        setup.add_all([alice, bob, movie, hall])
        setup.flush()
        seat = Seat(hall_id=hall.id, row="A", number=1)
        start = datetime.now(timezone.utc) + timedelta(days=1)
        screening = Screening(
            movie_id=movie.id,
            hall_id=hall.id,
            start_time=start,
            end_time=start + timedelta(hours=3),
            base_price=2000,
        )
        setup.add_all([seat, screening])
        setup.commit()
        alice_id, bob_id, seat_id, screening_id = alice.id, bob.id, seat.id, screening.id

    first, second = file_sessions(), file_sessions()
    real_check = reservation.check_availability

    def check_then_get_overtaken(db, screening_id, seat_ids):
        result = real_check(db, screening_id, seat_ids)
        # Alice books and commits on her own connection after Bob saw the seat free
        monkeypatch.setattr(reservation, "check_availability", real_check)
        assert reservation.reserve_tickets(
            first, alice_id, screening_id, [{"seat_id": seat_id, "price": 2000}]
        ).success
        return result

    monkeypatch.setattr(reservation, "check_availability", check_then_get_overtaken)
    try:
        result = reservation.reserve_tickets(
            second, bob_id, screening_id, [{"seat_id": seat_id, "price": 2000}]
        )

        assert result.code == "seat_conflict"
        assert result.details == {"conflicting": [seat_id]}
        holders = [t.user_id for t in second.query(Ticket).filter(Ticket.seat_id == seat_id)]
        assert holders == [alice_id]
    finally:
        first.close()
        second.close()
