from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, Text, DateTime, Numeric
from sqlalchemy.orm import relationship

from app.data.database import Base
from app.domain.enums import OrderStatus, PaymentStatus


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING_PAYMENT.value, index=True)

    # total_amount = subtotal + delivery_fee + service_fee - total_discount
    subtotal = Column(Numeric(12, 2), nullable=False)
    delivery_fee = Column(Numeric(12, 2), nullable=False)
    service_fee = Column(Numeric(12, 2), nullable=False)
    total_discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="IDR")

    payment_method = Column(String(32), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    delivery_method = Column(String(32), nullable=False)
    delivery_address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    delivery_time_slot = Column(String(32), nullable=True)
    tracking_number = Column(String(64), nullable=True)

    notes = Column(Text, nullable=True)
    cancelled_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
    buyer = relationship("UserModel", foreign_keys=[buyer_id])
    seller = relationship("UserModel", foreign_keys=[seller_id])
    delivery_address = relationship("AddressModel")
