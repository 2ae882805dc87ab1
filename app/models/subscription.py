from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Numeric
from sqlalchemy.orm import relationship
from app.db.base import Base, generate_uuid, utcnow


class UserSubscription(Base):
    """
    One row per subscription attempt.

    status: pending -> active | cancelled (both terminal)
    payment_status: pending -> success | failed
    """

    __tablename__ = "user_subscriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # Points at either public_users or university_users, so no foreign key
    user_id = Column(String(36), nullable=False, index=True)
    subscription_plan_id = Column(String(36), ForeignKey("subscription_plans.id"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_reference = Column(String(100), unique=True, index=True, nullable=False)
    amount_paid = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="GHS")
    auto_renew = Column(Boolean, default=False, nullable=False)
    start_date = Column(DateTime, nullable=True)  # Stamped on activation
    end_date = Column(DateTime, nullable=True)  # Stamped on activation
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    plan = relationship("SubscriptionPlan", lazy="joined")
