from typing import Dict, Tuple

USER_TYPES: Tuple[str, ...] = ("student", "staff", "public")

# Walk-in plans are paid at the gym reception; every other duration goes through Paystack
WALK_IN = "walk-in"

# Display order for plan listings
DURATION_TYPE_ORDER: Dict[str, int] = {
    WALK_IN: 1,
    "monthly": 2,
    "semester": 3,
    "half-year": 4,
    "yearly": 5,
}

PAYMENT_REFERENCE_PREFIX = "GYM"

# Subscription lifecycle
STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"

PAYMENT_PENDING = "pending"
PAYMENT_SUCCESS = "success"
PAYMENT_FAILED = "failed"


def is_valid_user_type(user_type: str) -> bool:
    return user_type in USER_TYPES


def is_walk_in(duration_type: str) -> bool:
    return duration_type == WALK_IN


# Gym staff; kept apart from member user types so admin tokens never reach member routes
ADMIN_USER_TYPE = "admin"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ADMIN_ROLES: Tuple[str, ...] = (ROLE_ADMIN, ROLE_SUPER_ADMIN)
