#!/usr/bin/env python3
"""
Development data seeder.

Seeds (idempotently, keyed on natural identifiers):
  - the subscription plan catalog for student, staff and public users
  - a handful of university directory rows covering an active student, a
    graduated student, a student past their expiry date and a staff member
  - a super admin for the dashboard (ADMIN_EMAIL / ADMIN_PASSWORD, with dev defaults)

Run from project root:
  python scripts/seed_dev_data.py
  python scripts/seed_dev_data.py --plans-only

Requires: DATABASE_URL in environment (.env or export).
"""
import argparse
import os
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Run from project root; ensure app is importable
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")

from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.core.plans import ROLE_SUPER_ADMIN  # noqa: E402
from app.models import AdminUser, SubscriptionPlan, UniversityMember  # noqa: E402
from app.utils.auth import hash_password  # noqa: E402

# (user_type, duration_type, name, price, days)
PLANS = [
    ("student", "walk-in", "Student Walk-in", "10.00", 1),
    ("student", "monthly", "Student Monthly", "50.00", 30),
    ("student", "semester", "Student Semester", "200.00", 120),
    ("student", "yearly", "Student Yearly", "350.00", 365),
    ("staff", "walk-in", "Staff Walk-in", "15.00", 1),
    ("staff", "monthly", "Staff Monthly", "80.00", 30),
    ("staff", "half-year", "Staff Half-Year", "400.00", 182),
    ("staff", "yearly", "Staff Yearly", "700.00", 365),
    ("public", "walk-in", "Public Walk-in", "25.00", 1),
    ("public", "monthly", "Public Monthly", "150.00", 30),
    ("public", "half-year", "Public Half-Year", "750.00", 182),
    ("public", "yearly", "Public Yearly", "1400.00", 365),
]


def _members(today: date):
    return [
        UniversityMember(
            id="10000001", first_name="Ama", last_name="Mensah", email="ama.mensah@st.ug.edu.gh",
            hall_of_residence="Legon Hall", member_type="student",
            issue_date=today - timedelta(days=365), expiry_date=today + timedelta(days=365 * 2),
            academic_year="2025/2026", program="BSc Computer Science", level="300",
            faculty="Physical and Mathematical Sciences", department="Computer Science", status="active",
        ),
        UniversityMember(
            id="10000002", first_name="Kwame", last_name="Boateng", email="kwame.boateng@st.ug.edu.gh",
            hall_of_residence="Akuafo Hall", member_type="student",
            issue_date=today - timedelta(days=365 * 4), expiry_date=today - timedelta(days=30),
            academic_year="2021/2022", program="BA Economics", level="400",
            faculty="Social Sciences", department="Economics", status="graduated",
        ),
        UniversityMember(
            id="10000003", first_name="Efua", last_name="Owusu", email="efua.owusu@st.ug.edu.gh",
            hall_of_residence="Volta Hall", member_type="student",
            issue_date=today - timedelta(days=365 * 3), expiry_date=today - timedelta(days=1),
            academic_year="2022/2023", program="BSc Nursing", level="400",
            faculty="Health Sciences", department="Nursing", status="active",
        ),
        UniversityMember(
            id="20000001", first_name="Kofi", last_name="Asante", email="kofi.asante@ug.edu.gh",
            member_type="staff", issue_date=today - timedelta(days=365 * 6), expiry_date=None,
            faculty="Engineering Sciences", department="Biomedical Engineering", status="active",
        ),
    ]


def seed_plans(db) -> int:
    created = 0
    for user_type, duration_type, name, price, days in PLANS:
        exists = db.query(SubscriptionPlan).filter(
            SubscriptionPlan.user_type == user_type,
            SubscriptionPlan.duration_type == duration_type,
        ).first()
        if exists:
            continue
        db.add(SubscriptionPlan(
            name=name,
            user_type=user_type,
            duration_type=duration_type,
            price_cedis=Decimal(price),
            duration_days=days,
            description=f"{name} membership ({days} day{'s' if days != 1 else ''})",
            is_active=True,
        ))
        created += 1
    db.commit()
    return created


def seed_members(db) -> int:
    created = 0
    for member in _members(date.today()):
        if db.query(UniversityMember).filter(UniversityMember.id == member.id).first():
            continue
        db.add(member)
        created += 1
    db.commit()
    return created


def seed_admin(db) -> int:
    email = os.getenv("ADMIN_EMAIL", "admin@uggym.local").strip().lower()
    if db.query(AdminUser).filter(AdminUser.email == email).first():
        return 0
    db.add(AdminUser(
        email=email,
        password_hash=hash_password(os.getenv("ADMIN_PASSWORD", "changeme123")),
        first_name="Gym",
        last_name="Admin",
        role=ROLE_SUPER_ADMIN,
        is_active=True,
    ))
    db.commit()
    return 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed development data")
    parser.add_argument("--plans-only", action="store_true", help="Only seed subscription plans")
    parser.add_argument("--create-tables", action="store_true", help="Run create_all before seeding")
    args = parser.parse_args()

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print(f"Plans created: {seed_plans(db)}")
        if not args.plans_only:
            print(f"Directory members created: {seed_members(db)}")
            print(f"Admins created: {seed_admin(db)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
