import enum
from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base

class SeatType(str, enum.Enum):
    standard = "standard"
    vip = "vip"
    disabled = "disabled"

class Seat(Base):
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("hall_id", "row", "number", name="uq_seats_hall_row_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    hall_id = Column(Integer, ForeignKey("halls.id"), nullable=False, index=True)
    row = Column(String(5), nullable=False)
    number = Column(Integer, nullable=False)
    # Informational only, never affects ticket price
    seat_type = Column(SAEnum(SeatType, native_enum=False), nullable=False, default=SeatType.standard)

    hall = relationship("Hall", back_populates="seats")
    tickets = relationship("Ticket", back_populates="seat")
