from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class CreateSubscriptionRequest(CamelModel):
    plan_id: str = Field(min_length=1)
    auto_renew: bool = False


class PlanResponse(CamelModel):
    id: str
    name: str
    user_type: str
    duration_type: str
    price_cedis: Decimal
    duration_days: int
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubscriptionResponse(CamelModel):
    id: str
    user_id: str
    subscription_plan_id: str
    status: str
    payment_status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    payment_reference: str
    amount_paid: Optional[Decimal] = None
    currency: str
    auto_renew: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Joined from the plan for history listings
    plan_name: Optional[str] = None
    user_type: Optional[str] = None
    duration_type: Optional[str] = None

    @classmethod
    def from_model(cls, subscription) -> "SubscriptionResponse":
        response = cls.model_validate(subscription)
        plan = subscription.plan
        if plan is not None:
            response.plan_name = plan.name
            response.user_type = plan.user_type
            response.duration_type = plan.duration_type
        return response


class PaymentInitResponse(CamelModel):
    payment_reference: str
    amount: Decimal
    currency: str
    payment_url: Optional[str] = None
    access_code: Optional[str] = None


class PaymentReceipt(CamelModel):
    amount: Decimal
    currency: Optional[str] = None
    paid_at: Optional[str] = None
    channel: Optional[str] = None
