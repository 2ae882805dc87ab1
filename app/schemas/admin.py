from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.subscription import SubscriptionResponse


class AdminLoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=6)


class AdminPasswordChange(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class CreateAdminRequest(CamelModel):
    email: str
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    role: str


class AdminResponse(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminAuthResponse(CamelModel):
    admin: AdminResponse
    token: str


class MemberSummary(CamelModel):
    """One row of the admin user listing; public and university users share this shape."""

    id: str
    first_name: str
    last_name: str
    email: str
    user_type: str
    is_active: bool
    phone: Optional[str] = None
    university_id: Optional[str] = None
    hall_of_residence: Optional[str] = None
    created_at: Optional[datetime] = None
    has_active_subscription: bool = False


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class WalkInSubscriptionRequest(CamelModel):
    user_id: str = Field(min_length=1)
    plan_id: str = Field(min_length=1)
    amount_paid: Decimal = Field(gt=0)


class CancelSubscriptionRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


class ExtendSubscriptionRequest(CamelModel):
    days: int = Field(ge=1, le=365)


class CompletePaymentRequest(CamelModel):
    amount_paid: Decimal = Field(gt=0)
    payment_method: str = Field(min_length=1, max_length=50)
    notes: Optional[str] = Field(None, max_length=500)


class CreatePlanRequest(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    user_type: str
    duration_type: str
    price_cedis: Decimal = Field(gt=0)
    duration_days: int = Field(gt=0)
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True


class UpdatePlanRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    price_cedis: Optional[Decimal] = Field(None, gt=0)
    duration_days: Optional[int] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class PaymentTransactionResponse(CamelModel):
    id: str
    user_subscription_id: str
    payment_reference: str
    paystack_reference: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SubscriptionDetail(SubscriptionResponse):
    payments: List[PaymentTransactionResponse] = []


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=(total + limit - 1) // limit)
