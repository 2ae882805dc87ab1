from fastapi import APIRouter, Depends

from app.core.plans import ADMIN_USER_TYPE
from app.dependencies.auth import get_current_member, get_optional_user
from app.dependencies.services import get_subscription_service
from app.schemas.subscription import (
    CreateSubscriptionRequest,
    PaymentInitResponse,
    PaymentReceipt,
    PlanResponse,
    SubscriptionResponse,
)
from app.services.subscription_service import SubscriptionService
from app.utils.responses import envelope

router = APIRouter()


@router.get("/plans")
def list_plans(service: SubscriptionService = Depends(get_subscription_service)):
    plans = service.list_plans()
    return envelope(
        "Subscription plans retrieved successfully",
        [PlanResponse.model_validate(plan) for plan in plans],
    )


@router.get("/plans/{user_type}")
def list_plans_for_user_type(
    user_type: str,
    service: SubscriptionService = Depends(get_subscription_service),
):
    plans = service.list_plans_for_user_type(user_type)
    return envelope(
        f"{user_type} subscription plans retrieved successfully",
        [PlanResponse.model_validate(plan) for plan in plans],
    )


@router.get("/my-subscriptions")
def my_subscriptions(
    current_user=Depends(get_current_member),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscriptions = service.list_user_subscriptions(current_user.id)
    return envelope(
        "User subscriptions retrieved successfully",
        [SubscriptionResponse.from_model(sub) for sub in subscriptions],
    )


@router.get("/my-active-subscription")
def my_active_subscription(
    current_user=Depends(get_current_member),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.get_active_subscription(current_user.id)
    if not subscription:
        return envelope("No active subscription found", None)
    return envelope("Active subscription retrieved successfully", SubscriptionResponse.from_model(subscription))


@router.post("/subscribe")
def subscribe(
    payload: CreateSubscriptionRequest,
    current_user=Depends(get_current_member),
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.create_subscription(current_user, payload.plan_id, auto_renew=payload.auto_renew)

    data = {
        "subscription": SubscriptionResponse.from_model(result.subscription),
        "plan": PlanResponse.model_validate(result.plan),
    }
    if result.payment_type == "walk-in":
        data.update({
            "paymentReference": result.payment_reference,
            "amount": str(result.amount),
            "currency": result.currency,
            "paymentType": result.payment_type,
        })
    else:
        data["payment"] = PaymentInitResponse(
            payment_reference=result.payment_reference,
            amount=result.amount,
            currency=result.currency,
            payment_url=result.payment_url,
            access_code=result.access_code,
        )
    return envelope(result.message, data)


@router.post("/verify-payment/{payment_reference}")
def verify_payment(
    payment_reference: str,
    caller=Depends(get_optional_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Polled by the frontend after the Paystack redirect. Walk-in references need an admin token."""
    walk_in_allowed = caller is not None and caller.user_type == ADMIN_USER_TYPE
    result = service.verify_payment(payment_reference, walk_in_allowed=walk_in_allowed)

    data = {"subscription": SubscriptionResponse.from_model(result.subscription)}
    if result.plan is not None:
        data["plan"] = PlanResponse.model_validate(result.plan)
    if result.receipt is not None:
        data["payment"] = PaymentReceipt(
            amount=result.receipt["amount"],
            currency=result.receipt.get("currency"),
            paid_at=result.receipt.get("paidAt"),
            channel=result.receipt.get("channel"),
        )
    return envelope(result.message, data)
