from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    #stan koszyka z ktorego policzono zamowienie, jeden stan = max jedno zamowienie
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    cart_version = Column(Integer, nullable=False)

    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    shipping_address = Column(JSON, nullable=False)
    billing_address = Column(JSON, nullable=False)
    customer_name = Column(String(200), nullable=False, index=True)
    customer_email = Column(String(255), nullable=True, index=True)

    payment_method = Column(String(50), nullable=False, default="card")
    payment_status = Column(String(20), nullable=False, default="Pending")  # Pending, Paid
    order_status = Column(String(20), nullable=False, default="Processing", index=True)  # Processing, Shipped, Delivered, Cancelled

    tracking_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    estimated_delivery = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )

    __table_args__ = (UniqueConstraint("cart_id", "cart_version", name="u_order_cart_version"),)
