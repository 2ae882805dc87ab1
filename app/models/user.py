from sqlalchemy import Column, String, Boolean, DateTime
from app.db.base import Base, generate_uuid, utcnow


class PublicUser(Base):
    """Self-registered gym member (email + password)."""

    __tablename__ = "public_users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Always stored lower-cased
    phone = Column(String(20), nullable=False)
    password_hash = Column(String, nullable=False)
    user_type = Column(String(20), nullable=False, default="public")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class UniversityUser(Base):
    """
    Student or staff member registered with their 8-digit university ID and a PIN.
    Identity fields are a snapshot of the university directory at registration time.
    """

    __tablename__ = "university_users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    university_id = Column(String(8), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), index=True, nullable=False)
    hall_of_residence = Column(String(100), nullable=True)
    user_type = Column(String(20), nullable=False)  # "student" or "staff"
    pin_hash = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
