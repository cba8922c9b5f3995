from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, Text, Boolean, DateTime, Float

from app.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    label = Column(String(50), nullable=False)
    recipient_name = Column(String(100), nullable=False)
    phone = Column(String(32), nullable=False)
    full_address = Column(Text, nullable=False)
    province = Column(String(100), nullable=True)
    city = Column(String(100), nullable=False)
    district = Column(String(100), nullable=True)
    postal_code = Column(String(16), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    # najwyzej jeden primary na usera, pilnuje AddressService
    is_primary = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
