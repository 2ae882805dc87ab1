"""Staff-only management surface for the dashboard. Every route needs an admin token."""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.dependencies.auth import get_current_admin
from app.dependencies.services import get_admin_service, get_subscription_service
from app.schemas.admin import (
    CancelSubscriptionRequest,
    CompletePaymentRequest,
    CreatePlanRequest,
    ExtendSubscriptionRequest,
    PaymentTransactionResponse,
    SubscriptionDetail,
    UpdatePlanRequest,
    WalkInSubscriptionRequest,
    paginate,
)
from app.schemas.auth import user_response
from app.schemas.subscription import PlanResponse, SubscriptionResponse
from app.services.admin_service import AdminService
from app.services.subscription_service import SubscriptionService
from app.utils.responses import envelope

router = APIRouter(dependencies=[Depends(get_current_admin)])


# ---- users ---------------------------------------------------------------

@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    user_type: Optional[str] = Query(None, alias="userType"),
    has_active_subscription: Optional[bool] = Query(None, alias="hasActiveSubscription"),
    admin: AdminService = Depends(get_admin_service),
):
    users, total = admin.list_users(page, limit, search, user_type, has_active_subscription)
    return envelope("Users retrieved successfully", {
        "users": users,
        "pagination": paginate(page, limit, total),
    })


@router.get("/users/{user_id}")
def get_user(user_id: str, admin: AdminService = Depends(get_admin_service)):
    return envelope("User retrieved successfully", user_response(admin.get_user(user_id)))


@router.patch("/users/{user_id}/activate")
def activate_user(user_id: str, admin: AdminService = Depends(get_admin_service)):
    return envelope("User activated successfully", user_response(admin.set_user_active(user_id, True)))


@router.patch("/users/{user_id}/deactivate")
def deactivate_user(user_id: str, admin: AdminService = Depends(get_admin_service)):
    return envelope("User deactivated successfully", user_response(admin.set_user_active(user_id, False)))


# ---- subscriptions -------------------------------------------------------

@router.get("/subscriptions")
def list_subscriptions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    user_type: Optional[str] = Query(None, alias="userType"),
    plan_id: Optional[str] = Query(None, alias="planId"),
    admin: AdminService = Depends(get_admin_service),
):
    subscriptions, total = admin.list_subscriptions(page, limit, status_filter, user_type, plan_id)
    return envelope("Subscriptions retrieved successfully", {
        "subscriptions": [SubscriptionResponse.from_model(sub) for sub in subscriptions],
        "pagination": paginate(page, limit, total),
    })


@router.get("/subscriptions/{subscription_id}")
def get_subscription(subscription_id: str, admin: AdminService = Depends(get_admin_service)):
    subscription, payments = admin.get_subscription(subscription_id)
    detail = SubscriptionDetail(
        **SubscriptionResponse.from_model(subscription).model_dump(),
        payments=[PaymentTransactionResponse.model_validate(p) for p in payments],
    )
    return envelope("Subscription retrieved successfully", detail)


@router.post("/subscriptions/walk-in", status_code=status.HTTP_201_CREATED)
def create_walk_in_subscription(
    payload: WalkInSubscriptionRequest,
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.create_walk_in_subscription(payload.user_id, payload.plan_id, payload.amount_paid)
    return envelope(
        "Walk-in subscription created successfully",
        SubscriptionResponse.from_model(subscription),
        status_code=status.HTTP_201_CREATED,
    )


@router.patch("/subscriptions/{subscription_id}/cancel")
def cancel_subscription(
    subscription_id: str,
    payload: Optional[CancelSubscriptionRequest] = Body(None),
    service: SubscriptionService = Depends(get_subscription_service),
):
    reason = payload.reason if payload else None
    subscription = service.cancel_subscription(subscription_id, reason)
    return envelope("Subscription cancelled successfully", SubscriptionResponse.from_model(subscription))


@router.patch("/subscriptions/{subscription_id}/extend")
def extend_subscription(
    subscription_id: str,
    payload: ExtendSubscriptionRequest,
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.extend_subscription(subscription_id, payload.days)
    return envelope(
        f"Subscription extended by {payload.days} days",
        SubscriptionResponse.from_model(subscription),
    )


# ---- plans ---------------------------------------------------------------

@router.get("/subscription-plans")
def list_plans(admin: AdminService = Depends(get_admin_service)):
    return envelope(
        "Subscription plans retrieved successfully",
        [PlanResponse.model_validate(plan) for plan in admin.list_all_plans()],
    )


@router.post("/subscription-plans", status_code=status.HTTP_201_CREATED)
def create_plan(payload: CreatePlanRequest, admin: AdminService = Depends(get_admin_service)):
    plan = admin.create_plan(payload)
    return envelope(
        "Subscription plan created successfully",
        PlanResponse.model_validate(plan),
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/subscription-plans/{plan_id}")
def update_plan(plan_id: str, payload: UpdatePlanRequest, admin: AdminService = Depends(get_admin_service)):
    plan = admin.update_plan(plan_id, payload)
    return envelope("Subscription plan updated successfully", PlanResponse.model_validate(plan))


# ---- payments ------------------------------------------------------------

@router.get("/payments")
def list_payments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[str] = Query(None, alias="status"),
    method: Optional[str] = Query(None),
    admin: AdminService = Depends(get_admin_service),
):
    payments, total = admin.list_payments(page, limit, status_filter, method)
    return envelope("Payments retrieved successfully", {
        "payments": [PaymentTransactionResponse.model_validate(p) for p in payments],
        "pagination": paginate(page, limit, total),
    })


@router.patch("/payments/{payment_reference}/complete")
def complete_payment(
    payment_reference: str,
    payload: CompletePaymentRequest,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Keyed by payment reference so walk-ins, which have no transaction row until paid, can be completed."""
    transaction = service.complete_payment(
        payment_reference, payload.amount_paid, payload.payment_method, payload.notes
    )
    return envelope("Payment marked as completed successfully", PaymentTransactionResponse.model_validate(transaction))
