"""
Gym staff accounts: login, profile, password changes and super-admin account creation.

Admin tokens are signed with the same JWT settings as member tokens and carry
userType "admin" plus the admin's role; AuthService.verify_token resolves them
to AdminUser rows.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import JWTConfig, settings
from app.core.exceptions import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidFormatError,
    NotFoundError,
)
from app.core.plans import ADMIN_ROLES, ADMIN_USER_TYPE
from app.db.base import utcnow
from app.models.admin_user import AdminUser
from app.schemas.admin import CreateAdminRequest
from app.utils.auth import (
    create_access_token,
    hash_password,
    is_valid_email,
    sanitize_string,
    verify_password,
)

logger = logging.getLogger(__name__)


class AdminAuthService:
    def __init__(self, db: Session, jwt_config: Optional[JWTConfig] = None):
        self.db = db
        self.jwt_config = jwt_config or settings.jwt

    def issue_token(self, admin: AdminUser) -> str:
        return create_access_token(
            {
                "sub": admin.id,
                "userId": admin.id,
                "userType": ADMIN_USER_TYPE,
                "role": admin.role,
                "email": admin.email,
            },
            config=self.jwt_config,
        )

    def login(self, email: str, password: str) -> Tuple[AdminUser, str]:
        admin = self.db.query(AdminUser).filter(
            AdminUser.email == email.strip().lower(),
            AdminUser.is_active.is_(True),
        ).first()
        if not admin or not verify_password(password, admin.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        admin.last_login_at = utcnow()
        self.db.commit()
        self.db.refresh(admin)
        logger.info("Admin %s logged in", admin.id)
        return admin, self.issue_token(admin)

    def get_admin(self, admin_id: str) -> AdminUser:
        admin = self.db.query(AdminUser).filter(
            AdminUser.id == admin_id,
            AdminUser.is_active.is_(True),
        ).first()
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    def change_password(self, admin: AdminUser, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, admin.password_hash):
            raise InvalidFormatError("Current password is incorrect")
        if current_password == new_password:
            raise InvalidFormatError("New password cannot be the same as current password")

        admin.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info("Admin %s changed their password", admin.id)

    def create_admin(self, data: CreateAdminRequest) -> AdminUser:
        email = data.email.strip().lower()
        if not is_valid_email(email):
            raise InvalidFormatError("Please provide a valid email address")
        if data.role not in ADMIN_ROLES:
            raise InvalidFormatError("Role must be either admin or super_admin")

        if self.db.query(AdminUser).filter(AdminUser.email == email).first():
            raise AlreadyExistsError("An admin with this email already exists")

        admin = AdminUser(
            email=email,
            password_hash=hash_password(data.password),
            first_name=sanitize_string(data.first_name),
            last_name=sanitize_string(data.last_name),
            role=data.role,
            is_active=True,
        )
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        logger.info("Created %s account %s", admin.role, admin.id)
        return admin

    def list_admins(self) -> List[AdminUser]:
        return self.db.query(AdminUser).filter(
            AdminUser.is_active.is_(True)
        ).order_by(AdminUser.created_at.desc()).all()
