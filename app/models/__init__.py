from app.models.user import PublicUser, UniversityUser
from app.models.university_member import UniversityMember
from app.models.subscription_plan import SubscriptionPlan
from app.models.subscription import UserSubscription
from app.models.payment_transaction import PaymentTransaction
from app.models.admin_user import AdminUser

__all__ = [
    "PublicUser",
    "UniversityUser",
    "UniversityMember",
    "SubscriptionPlan",
    "UserSubscription",
    "PaymentTransaction",
    "AdminUser",
]
