from sqlalchemy import Column, String, Integer, Boolean, DateTime, Numeric, Text
from app.db.base import Base, generate_uuid, utcnow


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    user_type = Column(String(20), nullable=False, index=True)  # student / staff / public
    duration_type = Column(String(20), nullable=False)  # walk-in / monthly / semester / half-year / yearly
    # Major units (cedis); Paystack amounts are converted at the gateway boundary
    price_cedis = Column(Numeric(10, 2), nullable=False)
    duration_days = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
