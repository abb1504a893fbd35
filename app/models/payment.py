from sqlalchemy import Column, String, DateTime, func, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.db.session import Base

PAYMENT_METHODS = ("card", "bank_transfer", "cash")

class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, unique=True)
    amount = Column(Integer, nullable=False)
    method = Column(String(20), nullable=False) # card, bank_transfer, cash
    status = Column(String(20), nullable=False, default="completed")
    transaction_id = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    ticket = relationship("Ticket", back_populates="payment")
