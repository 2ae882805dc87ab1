from sqlalchemy import Column, String, Boolean, DateTime
from app.db.base import Base, generate_uuid, utcnow
from app.core.plans import ADMIN_USER_TYPE, ROLE_ADMIN


class AdminUser(Base):
    """Gym staff account for the admin dashboard (email + password, admin or super_admin role)."""

    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Always stored lower-cased
    password_hash = Column(String, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_ADMIN)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def user_type(self) -> str:
        return ADMIN_USER_TYPE
