"""
Admin dashboard reads and catalog management: member directory with soft
(de)activation, subscription and payment listings, plan create/update.

Lifecycle writes (walk-in, completion, cancel, extend) stay in SubscriptionService.
"""
import logging
from typing import List, Optional, Set, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import AlreadyExistsError, InvalidFormatError, NotFoundError
from app.core.plans import DURATION_TYPE_ORDER, STATUS_ACTIVE, is_valid_user_type
from app.db.base import utcnow
from app.models.payment_transaction import PaymentTransaction
from app.models.subscription import UserSubscription
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import PublicUser, UniversityUser
from app.schemas.admin import CreatePlanRequest, MemberSummary, UpdatePlanRequest

logger = logging.getLogger(__name__)


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    # ---- members -------------------------------------------------------

    def _active_subscriber_ids(self) -> Set[str]:
        rows = self.db.query(UserSubscription.user_id).filter(
            UserSubscription.status == STATUS_ACTIVE,
            UserSubscription.end_date > utcnow(),
        ).all()
        return {row.user_id for row in rows}

    def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        user_type: Optional[str] = None,
        has_active_subscription: Optional[bool] = None,
    ) -> Tuple[List[MemberSummary], int]:
        """Public and university users merged into one listing, newest first."""
        if user_type is not None and not is_valid_user_type(user_type):
            raise InvalidFormatError("Invalid user type. Must be student, staff, or public")

        models = []
        if user_type in (None, "public"):
            models.append(PublicUser)
        if user_type != "public":
            models.append(UniversityUser)

        users = []
        for model in models:
            query = self.db.query(model)
            if model is UniversityUser and user_type:
                query = query.filter(UniversityUser.user_type == user_type)
            if search:
                pattern = f"%{search.strip()}%"
                query = query.filter(or_(
                    model.first_name.ilike(pattern),
                    model.last_name.ilike(pattern),
                    model.email.ilike(pattern),
                ))
            users.extend(query.all())

        subscribers = self._active_subscriber_ids()
        summaries = [
            MemberSummary.model_validate(user).model_copy(
                update={"has_active_subscription": user.id in subscribers}
            )
            for user in users
        ]
        if has_active_subscription is not None:
            summaries = [s for s in summaries if s.has_active_subscription == has_active_subscription]
        summaries.sort(key=lambda s: s.created_at or utcnow(), reverse=True)

        start = _offset(page, limit)
        return summaries[start:start + limit], len(summaries)

    def get_user(self, user_id: str):
        user = (
            self.db.query(PublicUser).filter(PublicUser.id == user_id).first()
            or self.db.query(UniversityUser).filter(UniversityUser.id == user_id).first()
        )
        if not user:
            raise NotFoundError("User not found")
        return user

    def set_user_active(self, user_id: str, active: bool):
        """Soft (de)activation. Deactivated users can neither log in nor use existing tokens."""
        user = self.get_user(user_id)
        user.is_active = active
        self.db.commit()
        self.db.refresh(user)
        logger.info("%s user %s", "Activated" if active else "Deactivated", user.id)
        return user

    # ---- subscriptions and payments ------------------------------------

    def list_subscriptions(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        user_type: Optional[str] = None,
        plan_id: Optional[str] = None,
    ) -> Tuple[List[UserSubscription], int]:
        query = self.db.query(UserSubscription).join(
            SubscriptionPlan, UserSubscription.subscription_plan_id == SubscriptionPlan.id
        )
        if status:
            query = query.filter(UserSubscription.status == status)
        if user_type:
            query = query.filter(SubscriptionPlan.user_type == user_type)
        if plan_id:
            query = query.filter(UserSubscription.subscription_plan_id == plan_id)

        total = query.count()
        items = query.order_by(UserSubscription.created_at.desc()).offset(_offset(page, limit)).limit(limit).all()
        return items, total

    def get_subscription(self, subscription_id: str) -> Tuple[UserSubscription, List[PaymentTransaction]]:
        subscription = self.db.query(UserSubscription).filter(UserSubscription.id == subscription_id).first()
        if not subscription:
            raise NotFoundError("Subscription not found")
        payments = self.db.query(PaymentTransaction).filter(
            PaymentTransaction.user_subscription_id == subscription.id
        ).order_by(PaymentTransaction.created_at.desc()).all()
        return subscription, payments

    def list_payments(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        method: Optional[str] = None,
    ) -> Tuple[List[PaymentTransaction], int]:
        query = self.db.query(PaymentTransaction)
        if status:
            query = query.filter(PaymentTransaction.status == status)
        if method:
            query = query.filter(PaymentTransaction.payment_method == method)

        total = query.count()
        items = query.order_by(PaymentTransaction.created_at.desc()).offset(_offset(page, limit)).limit(limit).all()
        return items, total

    # ---- plan catalog --------------------------------------------------

    def list_all_plans(self) -> List[SubscriptionPlan]:
        """Every plan, inactive ones included."""
        return self.db.query(SubscriptionPlan).order_by(
            SubscriptionPlan.user_type, SubscriptionPlan.duration_days
        ).all()

    def create_plan(self, data: CreatePlanRequest) -> SubscriptionPlan:
        if not is_valid_user_type(data.user_type):
            raise InvalidFormatError("Invalid user type. Must be student, staff, or public")
        if data.duration_type not in DURATION_TYPE_ORDER:
            raise InvalidFormatError(
                "Invalid duration type. Must be one of: " + ", ".join(DURATION_TYPE_ORDER)
            )

        existing = self.db.query(SubscriptionPlan).filter(
            SubscriptionPlan.user_type == data.user_type,
            SubscriptionPlan.duration_type == data.duration_type,
        ).first()
        if existing:
            raise AlreadyExistsError(f"A {data.duration_type} plan for {data.user_type} users already exists")

        plan = SubscriptionPlan(**data.model_dump())
        self.db.add(plan)
        self.db.commit()
        self.db.refresh(plan)
        logger.info("Created plan %s (%s %s)", plan.id, plan.user_type, plan.duration_type)
        return plan

    def update_plan(self, plan_id: str, data: UpdatePlanRequest) -> SubscriptionPlan:
        # description may be cleared; the other columns are NOT NULL
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field == "description"
        }
        if not changes:
            raise InvalidFormatError("No valid fields to update")

        plan = self.db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
        if not plan:
            raise NotFoundError("Subscription plan not found")

        for field, value in changes.items():
            setattr(plan, field, value)
        self.db.commit()
        self.db.refresh(plan)
        logger.info("Updated plan %s: %s", plan.id, ", ".join(sorted(changes)))
        return plan
