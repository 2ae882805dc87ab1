from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Text
from app.db.base import Base, generate_uuid, utcnow


class PaymentTransaction(Base):
    """
    Payment attempt log for a subscription, keyed by the shared payment reference.

    gateway_response keeps the raw Paystack payload (or the failure message) so
    disputes can be traced back to what the gateway actually said.
    """

    __tablename__ = "payment_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_subscription_id = Column(
        String(36), ForeignKey("user_subscriptions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payment_reference = Column(String(100), nullable=False, index=True)
    paystack_reference = Column(String(100), nullable=True)

    # Major units (e.g. 50.00 for GHS 50.00)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="GHS")

    status = Column(String(20), nullable=False, default="pending")  # pending / success / failed / abandoned
    payment_method = Column(String(50), nullable=True)  # "walk-in" or the Paystack channel
    gateway_response = Column(Text, nullable=True)

    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
