import os

# Point the app at an in-memory database before anything imports the engine
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import SessionLocal, engine, get_db
from app.main import app
from app.models import Hall, Movie, Product, Screening, Seat, User


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _make_user(db, email, role="user", full_name="Test User"):
    user = User(email=email, password_hash="not-a-real-hash", full_name=full_name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}


@pytest.fixture
def user(db):
    return _make_user(db, "viewer@example.com")


@pytest.fixture
def other_user(db):
    return _make_user(db, "someone.else@example.com", full_name="Someone Else")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", role="admin", full_name="Box Office")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def movie(db):
    movie = Movie(title="Arrival", slug="arrival", duration_minutes=116, genre="sci-fi")
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@pytest.fixture
def hall(db):
    """Hall 1 with rows A and B, five standard seats each."""
    hall = Hall(name="Hall 1", screen_type="regular", capacity=10)
    db.add(hall)
    db.flush()
    for row in ("A", "B"):
        for number in range(1, 6):
            db.add(Seat(hall_id=hall.id, row=row, number=number))
    db.commit()
    db.refresh(hall)
    return hall


@pytest.fixture
def seats(db, hall):
    """Seat lookup by label, e.g. seats["A1"]."""
    return {
        f"{seat.row}{seat.number}": seat
        for seat in db.query(Seat).filter(Seat.hall_id == hall.id).all()
    }


@pytest.fixture
def screening(db, movie, hall):
    start = datetime.now(timezone.utc) + timedelta(days=1)
    screening = Screening(
        movie_id=movie.id,
        hall_id=hall.id,
        start_time=start,
        end_time=start + timedelta(minutes=movie.duration_minutes),
        base_price=settings.DEFAULT_BASE_PRICE,
    )
    db.add(screening)
    db.commit()
    db.refresh(screening)
    return screening


@pytest.fixture
def products(db):
    popcorn = Product(name="Popcorn", price=500, category="popcorn")
    soda = Product(name="Soda", price=300, category="drinks")
    retired = Product(name="Nachos", price=700, category="snacks", is_active=False)
    db.add_all([popcorn, soda, retired])
    db.commit()
    return {"popcorn": popcorn, "soda": soda, "retired": retired}
