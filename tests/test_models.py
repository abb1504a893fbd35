import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import configure_mappers

from app import schemas
from app.db.base import Base
from app.models import Ticket, TicketStatus


def test_orm_mappings_are_valid():
    configure_mappers()
    assert {
        "users", "movies", "halls", "seats", "screenings", "products",
        "tickets", "ticket_status_changes", "orders", "order_items", "payments",
    } <= set(Base.metadata.tables)


def test_active_seat_index_is_partial_and_unique():
    index = next(ix for ix in Ticket.__table__.indexes if ix.name == "uq_tickets_active_screening_seat")
    assert index.unique
    assert [c.name for c in index.columns] == ["screening_id", "seat_id"]
    assert index.dialect_options["postgresql"]["where"] is not None
    assert index.dialect_options["sqlite"]["where"] is not None


def test_second_active_ticket_for_a_seat_is_rejected(db, user, screening, seats):
    db.add(Ticket(user_id=user.id, screening_id=screening.id, seat_id=seats["A1"].id, price=2000))
    db.commit()

    db.add(Ticket(user_id=user.id, screening_id=screening.id, seat_id=seats["A1"].id, price=2000))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_cancelled_tickets_do_not_hold_the_seat(db, user, screening, seats):
    db.add(Ticket(
        user_id=user.id,
        screening_id=screening.id,
        seat_id=seats["A1"].id,
        price=2000,
        status=TicketStatus.cancelled,
    ))
    db.add(Ticket(user_id=user.id, screening_id=screening.id, seat_id=seats["A1"].id, price=2000))
    db.commit()

    assert db.query(Ticket).filter(Ticket.seat_id == seats["A1"].id).count() == 2


def test_user_create_schema():
    user = schemas.UserCreate(email="test@example.com", full_name="Test User", password="password")
    assert user.phone is None

    with pytest.raises(ValidationError):
        schemas.UserCreate(email="not-an-email", full_name="Test User", password="password")


def test_screening_must_end_after_it_starts():
    with pytest.raises(ValidationError):
        schemas.ScreeningCreate(
            movie_id=1,
            hall_id=1,
            start_time="2030-01-01T20:00:00Z",
            end_time="2030-01-01T18:00:00Z",
        )


def test_order_create_has_no_client_total():
    order = schemas.OrderCreate(screening_id=1, seat_ids=[1, 2], total_amount=1)
    assert not hasattr(order, "total_amount")
