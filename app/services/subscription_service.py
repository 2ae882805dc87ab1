"""
Subscription lifecycle: create -> pending -> active | cancelled.

Online plans are paid through Paystack and activated either by the verify endpoint
(polled by the frontend after the Paystack redirect) or by the charge.success
webhook, whichever arrives first. Walk-in plans are paid at the gym reception and
activated without any gateway call, either by staff confirming the payment or by
the verify endpoint when an admin calls it. Staff can also record a walk-in
membership outright. Cancellation and extension are staff-only.

Activation is a conditional update (only from pending), so the webhook and a manual
verify racing on the same reference activate it at most once.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import (
    AmountMismatchError,
    ConflictError,
    GatewayError,
    InvalidFormatError,
    InvalidSignatureError,
    NotFoundError,
    PaymentFailedError,
    PermissionDeniedError,
    PlanMismatchError,
)
from app.core.plans import (
    DURATION_TYPE_ORDER,
    PAYMENT_FAILED,
    PAYMENT_PENDING,
    PAYMENT_SUCCESS,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    STATUS_PENDING,
    WALK_IN,
    is_valid_user_type,
    is_walk_in,
)
from app.db.base import utcnow
from app.models.payment_transaction import PaymentTransaction
from app.models.subscription import UserSubscription
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import PublicUser, UniversityUser
from app.services.billing_email import send_subscription_confirmation_email
from app.services.paystack import PaystackClient, amounts_match, generate_reference, minor_to_major

logger = logging.getLogger(__name__)

CHARGE_SUCCESS = "charge.success"

_duration_order = case(
    DURATION_TYPE_ORDER,
    value=SubscriptionPlan.duration_type,
    else_=len(DURATION_TYPE_ORDER) + 1,
)


@dataclass
class CheckoutResult:
    message: str
    subscription: UserSubscription
    plan: SubscriptionPlan
    payment_type: str  # "walk-in" or "online"
    payment_reference: str
    amount: Decimal
    currency: str
    payment_url: Optional[str] = None
    access_code: Optional[str] = None


@dataclass
class ActivationResult:
    message: str
    subscription: UserSubscription
    plan: Optional[SubscriptionPlan] = None
    already_active: bool = False
    receipt: Optional[Dict[str, Any]] = None


def _parse_paid_at(value: Optional[str]) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
            return parsed
        except ValueError:
            logger.warning("Unparseable paid_at from Paystack: %r", value)
    return utcnow()


def _paid_amount(value: Any, error_cls=InvalidFormatError) -> Decimal:
    """Paystack reports amounts in pesewas; non-numeric values are rejected."""
    try:
        return minor_to_major(value or 0)
    except (TypeError, ValueError, OverflowError):
        raise error_cls("Invalid payment amount", data={"amount": value})


class SubscriptionService:
    def __init__(self, db: Session, gateway: PaystackClient, settings: Optional[Settings] = None):
        self.db = db
        self.gateway = gateway
        self.settings = settings or default_settings

    # ---- reads ---------------------------------------------------------

    def list_plans(self) -> List[SubscriptionPlan]:
        return self.db.query(SubscriptionPlan).filter(
            SubscriptionPlan.is_active.is_(True)
        ).order_by(SubscriptionPlan.user_type, _duration_order).all()

    def list_plans_for_user_type(self, user_type: str) -> List[SubscriptionPlan]:
        if not is_valid_user_type(user_type):
            raise InvalidFormatError("Invalid user type. Must be student, staff, or public")
        return self.db.query(SubscriptionPlan).filter(
            SubscriptionPlan.user_type == user_type,
            SubscriptionPlan.is_active.is_(True),
        ).order_by(_duration_order).all()

    def get_plan(self, plan_id: str) -> Optional[SubscriptionPlan]:
        return self.db.query(SubscriptionPlan).filter(
            SubscriptionPlan.id == plan_id,
            SubscriptionPlan.is_active.is_(True),
        ).first()

    def list_user_subscriptions(self, user_id: str) -> List[UserSubscription]:
        return self.db.query(UserSubscription).filter(
            UserSubscription.user_id == user_id
        ).order_by(UserSubscription.created_at.desc()).all()

    def get_active_subscription(self, user_id: str) -> Optional[UserSubscription]:
        """The user's current membership: active and not yet past its end date."""
        return self.db.query(UserSubscription).filter(
            UserSubscription.user_id == user_id,
            UserSubscription.status == STATUS_ACTIVE,
            UserSubscription.end_date > utcnow(),
        ).order_by(UserSubscription.end_date.desc()).first()

    def find_by_reference(self, payment_reference: str) -> Optional[UserSubscription]:
        return self.db.query(UserSubscription).filter(
            UserSubscription.payment_reference == payment_reference
        ).first()

    # ---- create --------------------------------------------------------

    def create_subscription(self, user, plan_id: str, auto_renew: bool = False) -> CheckoutResult:
        plan = self.get_plan(plan_id)
        if not plan:
            raise NotFoundError("Subscription plan not found")

        if plan.user_type != user.user_type:
            raise PlanMismatchError(f"This plan is only available for {plan.user_type} users")

        # Read-then-write; two concurrent requests for the same user can both pass this check
        if self.get_active_subscription(user.id):
            raise ConflictError("You already have an active subscription")

        currency = self.settings.paystack.currency
        payment_reference = generate_reference()
        subscription = UserSubscription(
            user_id=user.id,
            subscription_plan_id=plan.id,
            status=STATUS_PENDING,
            payment_status=PAYMENT_PENDING,
            payment_reference=payment_reference,
            amount_paid=plan.price_cedis,
            currency=currency,
            auto_renew=auto_renew,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        logger.info(
            "Created pending subscription %s for user %s (plan %s, reference %s)",
            subscription.id, user.id, plan.id, payment_reference,
        )

        if is_walk_in(plan.duration_type):
            return CheckoutResult(
                message="Walk-in subscription created. Please proceed to payment at the gym reception.",
                subscription=subscription,
                plan=plan,
                payment_type=WALK_IN,
                payment_reference=payment_reference,
                amount=plan.price_cedis,
                currency=currency,
            )

        try:
            payment = self.gateway.initialize_transaction(
                amount=plan.price_cedis,
                email=user.email,
                reference=payment_reference,
                currency=currency,
                callback_url=f"{self.settings.client_url}/subscription/payment-callback",
                metadata={
                    "subscriptionId": subscription.id,
                    "planId": plan.id,
                    "planName": plan.name,
                    "userType": user.user_type,
                    "userId": user.id,
                },
            )
        except GatewayError as e:
            logger.error("Payment initialization failed for subscription %s: %s", subscription.id, e.message)
            self._mark_failed(subscription, e.message)
            raise GatewayError("Failed to initialize payment. Please try again.", error=e.message)

        self.db.add(PaymentTransaction(
            user_subscription_id=subscription.id,
            payment_reference=payment_reference,
            amount=plan.price_cedis,
            currency=currency,
            status=PAYMENT_PENDING,
        ))
        self.db.commit()

        return CheckoutResult(
            message="Subscription created successfully. Please complete payment.",
            subscription=subscription,
            plan=plan,
            payment_type="online",
            payment_reference=payment_reference,
            amount=plan.price_cedis,
            currency=currency,
            payment_url=payment.get("authorization_url"),
            access_code=payment.get("access_code"),
        )

    # ---- verify --------------------------------------------------------

    def verify_payment(self, payment_reference: str, walk_in_allowed: bool = True) -> ActivationResult:
        """
        Activate a pending subscription once its payment is confirmed. Walk-in
        references carry no gateway record to check, so callers that cannot vouch
        for the in-person payment pass walk_in_allowed=False.
        """
        subscription = self.find_by_reference(payment_reference)
        if not subscription:
            raise NotFoundError("Subscription not found")

        if subscription.status == STATUS_ACTIVE:
            return ActivationResult(
                message="Payment already verified and subscription is active",
                subscription=subscription,
                already_active=True,
            )
        if subscription.status == STATUS_CANCELLED:
            raise ConflictError("Subscription has been cancelled. Please create a new subscription.")

        plan = self.get_plan(subscription.subscription_plan_id)
        if not plan:
            raise NotFoundError("Subscription plan not found")

        if is_walk_in(plan.duration_type):
            if not walk_in_allowed:
                raise PermissionDeniedError("Walk-in payments must be confirmed by gym staff")
            activated = self._activate(
                subscription,
                plan,
                amount=plan.price_cedis,
                payment_method=WALK_IN,
                paid_at=utcnow(),
            )
            return ActivationResult(
                message=(
                    "Walk-in payment verified and subscription activated successfully"
                    if activated else "Payment already verified and subscription is active"
                ),
                subscription=subscription,
                plan=plan,
                already_active=not activated,
            )

        try:
            verification = self.gateway.verify_transaction(payment_reference)
        except GatewayError as e:
            logger.error("Paystack verification failed for %s: %s", payment_reference, e.message)
            self._mark_failed(subscription, e.message)
            raise GatewayError("Payment verification failed", error=e.message)

        gateway_status = verification.get("status")
        if gateway_status != "success":
            raise PaymentFailedError(
                f"Payment verification failed. Status: {gateway_status}",
                data={"status": gateway_status, "reference": payment_reference},
            )

        paid_amount = _paid_amount(verification.get("amount"), GatewayError)
        self._check_amount(payment_reference, paid_amount, plan)

        activated = self._activate(
            subscription,
            plan,
            amount=paid_amount,
            payment_method=verification.get("channel"),
            gateway_response=json.dumps(verification),
            paid_at=_parse_paid_at(verification.get("paid_at")),
            paystack_reference=verification.get("reference"),
        )
        return ActivationResult(
            message=(
                "Payment verified and subscription activated successfully"
                if activated else "Payment already verified and subscription is active"
            ),
            subscription=subscription,
            plan=plan,
            already_active=not activated,
            receipt={
                "amount": paid_amount,
                "currency": verification.get("currency"),
                "paidAt": verification.get("paid_at"),
                "channel": verification.get("channel"),
            },
        )

    # ---- webhook -------------------------------------------------------

    def handle_webhook(self, signature: Optional[str], raw_body: bytes) -> str:
        """
        Paystack webhook. The signature gates everything; nothing is read or
        written before it checks out. Returns the acknowledgement message.
        """
        if not self.gateway.validate_webhook_signature(raw_body, signature):
            logger.warning("Webhook: invalid Paystack signature")
            raise InvalidSignatureError("Invalid webhook signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise InvalidFormatError("Invalid JSON payload")
        if not isinstance(event, dict):
            raise InvalidFormatError("Invalid JSON payload")

        event_type = event.get("event")
        if event_type != CHARGE_SUCCESS:
            logger.info("Webhook: Unhandled event type: %s", event_type)
            return "Webhook received but not processed"

        data = event.get("data") or {}
        if not isinstance(data, dict):
            raise InvalidFormatError("Invalid JSON payload")
        reference = data.get("reference")
        if reference is not None and not isinstance(reference, str):
            raise InvalidFormatError("Invalid JSON payload")

        subscription = self.find_by_reference(reference) if reference else None
        if not subscription:
            logger.warning("Webhook: Subscription not found for reference %s", reference)
            raise NotFoundError("Subscription not found")

        if subscription.status == STATUS_ACTIVE:
            return "Webhook received - subscription already active"

        plan = self.get_plan(subscription.subscription_plan_id)
        if not plan:
            raise NotFoundError("Subscription plan not found")

        paid_amount = _paid_amount(data.get("amount"))
        self._check_amount(reference, paid_amount, plan)

        activated = self._activate(
            subscription,
            plan,
            amount=paid_amount,
            payment_method=data.get("channel"),
            gateway_response=json.dumps(data),
            paid_at=_parse_paid_at(data.get("paid_at")),
            paystack_reference=data.get("reference"),
        )
        if not activated:
            return "Webhook received - subscription already active"

        logger.info("Webhook: Successfully activated subscription %s for reference %s", subscription.id, reference)
        return "Webhook processed successfully"

    # ---- staff actions -------------------------------------------------

    def create_walk_in_subscription(self, user_id: str, plan_id: str, amount_paid: Decimal) -> UserSubscription:
        """Record a membership paid at the reception desk: created and activated in one go."""
        plan = self.get_plan(plan_id)
        if not plan:
            raise NotFoundError("Subscription plan not found or inactive")

        user = self._find_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        if plan.user_type != user.user_type:
            raise PlanMismatchError(f"Plan is for {plan.user_type} users, but user is {user.user_type}")
        if self.get_active_subscription(user.id):
            raise ConflictError("User already has an active subscription")

        subscription = UserSubscription(
            user_id=user.id,
            subscription_plan_id=plan.id,
            status=STATUS_PENDING,
            payment_status=PAYMENT_PENDING,
            payment_reference=generate_reference(),
            amount_paid=amount_paid,
            currency=self.settings.paystack.currency,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)

        self._activate(
            subscription,
            plan,
            amount=amount_paid,
            payment_method=WALK_IN,
            gateway_response="Walk-in subscription recorded by admin",
            paid_at=utcnow(),
        )
        logger.info("Walk-in subscription %s recorded for user %s", subscription.id, user.id)
        return subscription

    def complete_payment(
        self,
        payment_reference: str,
        amount_paid: Decimal,
        payment_method: str,
        notes: Optional[str] = None,
    ) -> PaymentTransaction:
        """Staff confirmation of a pending payment (walk-in desk payments, manual transfers)."""
        subscription = self.find_by_reference(payment_reference)
        if not subscription:
            raise NotFoundError("Payment transaction not found")
        if subscription.status == STATUS_ACTIVE or subscription.payment_status == PAYMENT_SUCCESS:
            raise ConflictError("Payment is already completed")

        gateway_response = "Walk-in payment completed by admin"
        if notes:
            gateway_response = f"{gateway_response}. Notes: {notes}"

        self._activate(
            subscription,
            subscription.plan,
            amount=amount_paid,
            payment_method=payment_method,
            gateway_response=gateway_response,
            paid_at=utcnow(),
        )
        subscription.amount_paid = amount_paid
        self.db.commit()
        return self.db.query(PaymentTransaction).filter(
            PaymentTransaction.payment_reference == payment_reference
        ).one()

    def cancel_subscription(self, subscription_id: str, reason: Optional[str] = None) -> UserSubscription:
        subscription = self.db.query(UserSubscription).filter(UserSubscription.id == subscription_id).first()
        if not subscription:
            raise NotFoundError("Subscription not found")

        updated = self.db.query(UserSubscription).filter(
            UserSubscription.id == subscription_id,
            UserSubscription.status.in_([STATUS_PENDING, STATUS_ACTIVE]),
        ).update(
            {UserSubscription.status: STATUS_CANCELLED, UserSubscription.updated_at: utcnow()},
            synchronize_session=False,
        )
        self.db.commit()
        self.db.refresh(subscription)
        if not updated:
            raise ConflictError(f"Subscription is {subscription.status} and cannot be cancelled")

        logger.info("Cancelled subscription %s (reason: %s)", subscription.id, reason or "none given")
        return subscription

    def extend_subscription(self, subscription_id: str, days: int) -> UserSubscription:
        subscription = self.db.query(UserSubscription).filter(
            UserSubscription.id == subscription_id,
            UserSubscription.status == STATUS_ACTIVE,
        ).first()
        if not subscription:
            raise NotFoundError("Active subscription not found")

        subscription.end_date = subscription.end_date + timedelta(days=days)
        self.db.commit()
        self.db.refresh(subscription)
        logger.info(
            "Extended subscription %s by %d days to %s", subscription.id, days, subscription.end_date.isoformat()
        )
        return subscription

    # ---- internals -----------------------------------------------------

    def _check_amount(self, reference: str, paid_amount: Decimal, plan: SubscriptionPlan) -> None:
        if not amounts_match(paid_amount, plan.price_cedis):
            logger.error(
                "Amount mismatch for %s. Expected: %s, Paid: %s", reference, plan.price_cedis, paid_amount
            )
            raise AmountMismatchError(
                "Payment amount mismatch",
                data={"expected": plan.price_cedis, "paid": paid_amount},
            )

    def _activate(
        self,
        subscription: UserSubscription,
        plan: SubscriptionPlan,
        *,
        amount: Decimal,
        payment_method: Optional[str] = None,
        gateway_response: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        paystack_reference: Optional[str] = None,
    ) -> bool:
        """
        pending -> active, stamping start/end dates and recording the successful
        transaction in the same commit. Returns False when another request already
        activated it; raises ConflictError if it was cancelled in the meantime.
        """
        start_date = utcnow()
        end_date = start_date + timedelta(days=plan.duration_days)

        updated = self.db.query(UserSubscription).filter(
            UserSubscription.id == subscription.id,
            UserSubscription.status == STATUS_PENDING,
        ).update(
            {
                UserSubscription.status: STATUS_ACTIVE,
                UserSubscription.payment_status: PAYMENT_SUCCESS,
                UserSubscription.start_date: start_date,
                UserSubscription.end_date: end_date,
                UserSubscription.updated_at: start_date,
            },
            synchronize_session=False,
        )

        if not updated:
            self.db.rollback()
            self.db.refresh(subscription)
            if subscription.status == STATUS_ACTIVE:
                logger.info("Subscription %s was activated concurrently; nothing to do", subscription.id)
                return False
            raise ConflictError(f"Subscription is {subscription.status} and cannot be activated")

        transaction = self._get_or_create_transaction(subscription, amount)
        transaction.status = PAYMENT_SUCCESS
        transaction.amount = amount
        transaction.paid_at = paid_at or start_date
        if payment_method:
            transaction.payment_method = payment_method
        if gateway_response:
            transaction.gateway_response = gateway_response
        if paystack_reference:
            transaction.paystack_reference = paystack_reference

        self.db.commit()
        self.db.refresh(subscription)
        logger.info(
            "Activated subscription %s (%s) until %s", subscription.id, plan.name, end_date.isoformat()
        )

        self._send_confirmation(subscription, plan, amount)
        return True

    def _mark_failed(self, subscription: UserSubscription, reason: str) -> None:
        """pending -> cancelled/failed after a known gateway failure; active rows are left alone."""
        self.db.query(UserSubscription).filter(
            UserSubscription.id == subscription.id,
            UserSubscription.status == STATUS_PENDING,
        ).update(
            {
                UserSubscription.status: STATUS_CANCELLED,
                UserSubscription.payment_status: PAYMENT_FAILED,
                UserSubscription.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
        transaction = self.db.query(PaymentTransaction).filter(
            PaymentTransaction.payment_reference == subscription.payment_reference
        ).first()
        if transaction:
            transaction.status = PAYMENT_FAILED
            transaction.gateway_response = reason
        self.db.commit()
        self.db.refresh(subscription)

    def _get_or_create_transaction(self, subscription: UserSubscription, amount: Decimal) -> PaymentTransaction:
        transaction = self.db.query(PaymentTransaction).filter(
            PaymentTransaction.payment_reference == subscription.payment_reference
        ).first()
        if transaction is None:
            transaction = PaymentTransaction(
                user_subscription_id=subscription.id,
                payment_reference=subscription.payment_reference,
                amount=amount,
                currency=subscription.currency,
            )
            self.db.add(transaction)
        return transaction

    def _find_user(self, user_id: str):
        return (
            self.db.query(PublicUser).filter(PublicUser.id == user_id).first()
            or self.db.query(UniversityUser).filter(UniversityUser.id == user_id).first()
        )

    def _send_confirmation(self, subscription: UserSubscription, plan: SubscriptionPlan, amount: Decimal) -> None:
        user = self._find_user(subscription.user_id)
        if not user:
            return
        send_subscription_confirmation_email(
            to_email=user.email,
            plan_name=plan.name,
            amount=amount,
            currency=subscription.currency,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            payment_reference=subscription.payment_reference,
            settings=self.settings,
        )
