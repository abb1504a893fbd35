import enum
from sqlalchemy import Column, String, DateTime, func, Integer, ForeignKey, Text, Index, text, Enum as SAEnum
from sqlalchemy.orm import relationship
from app.db.session import Base

class TicketStatus(str, enum.Enum):
    reserved = "reserved"
    paid = "paid"
    used = "used"
    cancelled = "cancelled"

# Statuses that hold a seat for a screening
ACTIVE_TICKET_STATUSES = (TicketStatus.reserved, TicketStatus.paid, TicketStatus.used)

_ACTIVE_SEAT_PREDICATE = text("status IN ('reserved', 'paid', 'used')")

def _status_column_type():
    return SAEnum(
        TicketStatus,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )

class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        # At most one seat-holding ticket per (screening, seat)
        Index(
            "uq_tickets_active_screening_seat",
            "screening_id",
            "seat_id",
            unique=True,
            postgresql_where=_ACTIVE_SEAT_PREDICATE,
            sqlite_where=_ACTIVE_SEAT_PREDICATE,
        ),
        Index("ix_tickets_user_screening_status", "user_id", "screening_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    screening_id = Column(Integer, ForeignKey("screenings.id"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    price = Column(Integer, nullable=False) # snapshot of the screening price at booking time
    status = Column(_status_column_type(), nullable=False, default=TicketStatus.reserved)
    qr_code = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    user = relationship("User", back_populates="tickets")
    screening = relationship("Screening", back_populates="tickets")
    seat = relationship("Seat", back_populates="tickets")
    order = relationship("Order", back_populates="tickets")
    payment = relationship("Payment", back_populates="ticket", uselist=False)
    order_items = relationship("OrderItem", back_populates="ticket")
    status_changes = relationship(
        "TicketStatusChange",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="TicketStatusChange.id",
    )

    @property
    def scan_code(self) -> str:
        from app.services.qr import ticket_scan_code
        return ticket_scan_code(self.id)

class TicketStatusChange(Base):
    __tablename__ = "ticket_status_changes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    from_status = Column(_status_column_type(), nullable=False)
    to_status = Column(_status_column_type(), nullable=False)
    reason = Column(String(50), nullable=True) # payment, check_in, cancellation
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    ticket = relationship("Ticket", back_populates="status_changes")
