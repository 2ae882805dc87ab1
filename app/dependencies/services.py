from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.services.admin_auth_service import AdminAuthService
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.paystack import PaystackClient
from app.services.subscription_service import SubscriptionService


def get_paystack_client() -> PaystackClient:
    return PaystackClient(settings.paystack)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db, jwt_config=settings.jwt)


def get_subscription_service(
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_paystack_client),
) -> SubscriptionService:
    return SubscriptionService(db, gateway, settings)


def get_admin_auth_service(db: Session = Depends(get_db)) -> AdminAuthService:
    return AdminAuthService(db, jwt_config=settings.jwt)


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db)
