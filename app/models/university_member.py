from datetime import date
from typing import Optional

from sqlalchemy import Column, String, Boolean, Date, DateTime
from app.db.base import Base, utcnow

EXPIRED_STATUSES = ("graduated", "inactive", "suspended")


class UniversityMember(Base):
    """
    Read-only university directory, maintained by the registrar.
    The gym only looks rows up by university ID; it never writes here.
    """

    __tablename__ = "university_members"

    id = Column(String(8), primary_key=True)  # 8-digit university ID
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    hall_of_residence = Column(String(100), nullable=True)
    member_type = Column(String(20), nullable=False)  # "student" or "staff"
    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)  # NULL for staff
    academic_year = Column(String(20), nullable=True)
    program = Column(String(255), nullable=True)
    level = Column(String(20), nullable=True)
    faculty = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    def is_expired(self, today: Optional[date] = None) -> bool:
        """Staff never expire; students expire on a non-active status or once the expiry date is reached."""
        if self.member_type != "student":
            return False
        if self.status in EXPIRED_STATUSES:
            return True
        today = today or date.today()
        return self.expiry_date is not None and self.expiry_date <= today
