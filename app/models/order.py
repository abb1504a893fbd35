from sqlalchemy import Column, String, DateTime, func, Integer, ForeignKey
from sqlalchemy.orm import relationship
from app.db.session import Base

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Integer, nullable=False) # recomputed server-side, never client supplied
    status = Column(String(20), nullable=False, default="pending", index=True) # pending, paid
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    user = relationship("User", back_populates="orders")
    tickets = relationship("Ticket", back_populates="order", order_by="Ticket.id")
    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    @property
    def scan_code(self) -> str:
        from app.services.qr import order_scan_code
        return order_scan_code(self.id)

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=True) # set for seat-scoped items
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Integer, nullable=False) # snapshot of product price at order time

    order = relationship("Order", back_populates="order_items")
    product = relationship("Product", back_populates="order_items")
    ticket = relationship("Ticket", back_populates="order_items")
