from sqlalchemy import Column, String, Boolean, Integer
from sqlalchemy.orm import relationship
from app.db.session import Base

class Hall(Base):
    __tablename__ = "halls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    screen_type = Column(String(50), nullable=True) # 'imax', 'regular', etc.
    capacity = Column(Integer, nullable=False, default=0) # kept equal to the seat count
    is_active = Column(Boolean, default=True)

    # Relationships
    seats = relationship("Seat", back_populates="hall", cascade="all, delete-orphan")
    screenings = relationship("Screening", back_populates="hall")
