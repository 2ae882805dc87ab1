from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidTokenError, NotFoundError, PermissionDeniedError
from app.core.plans import ADMIN_USER_TYPE, ROLE_SUPER_ADMIN, USER_TYPES
from app.db.session import get_db
from app.services.auth_service import AuthService
from app.utils.auth import extract_bearer_token


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """
    Resolve the bearer token to an active PublicUser, UniversityUser or AdminUser.
    Missing header -> 401 "Access token required"; anything else -> 401 "Invalid or expired token".
    """
    token = extract_bearer_token(authorization)
    if not token:
        raise InvalidTokenError("Access token required")

    try:
        return AuthService(db, jwt_config=settings.jwt).verify_token(token)
    except (InvalidTokenError, NotFoundError):
        raise InvalidTokenError("Invalid or expired token")


def require_user_type(*user_types: str):
    """Dependency factory: only the given user types may call the route."""

    def checker(current_user=Depends(get_current_user)):
        if current_user.user_type not in user_types:
            raise PermissionDeniedError("Insufficient permissions")
        return current_user

    return checker


# Members only: admin tokens are refused on member routes and vice versa
get_current_member = require_user_type(*USER_TYPES)
get_current_admin = require_user_type(ADMIN_USER_TYPE)


def require_super_admin(current_admin=Depends(get_current_admin)):
    if current_admin.role != ROLE_SUPER_ADMIN:
        raise PermissionDeniedError("Super admin privileges required")
    return current_admin


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """For public routes that behave differently for signed-in callers. A token that is sent must be valid."""
    if authorization is None:
        return None
    return get_current_user(authorization, db)
