import os

# Settings are read once at import time; configure the environment before importing the app
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["PAYSTACK_BASE_URL"] = "https://api.paystack.test"
os.environ["CLIENT_URL"] = "http://localhost:3000"
os.environ["RESEND_API_KEY"] = ""

import json
from datetime import date, timedelta
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import PaystackConfig, settings
from app.db.base import Base
from app.db.session import get_db
from app.dependencies.services import get_paystack_client
from app.main import app
from app.core.plans import ROLE_ADMIN, ROLE_SUPER_ADMIN
from app.models import AdminUser, SubscriptionPlan, UniversityMember
from app.schemas.auth import RegisterPublicRequest
from app.services.admin_auth_service import AdminAuthService
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.paystack import PaystackClient, compute_signature
from app.services.subscription_service import SubscriptionService
from app.utils.auth import hash_password

PAYSTACK_SECRET = "sk_test_secret"
PAYSTACK_BASE_URL = "https://api.paystack.test"


class FakePaystack:
    """
    In-process Paystack stand-in served through httpx.MockTransport, so the real
    PaystackClient request/response handling runs in every gateway test.
    """

    def __init__(self):
        self.requests = []
        self.initialized = {}  # reference -> initialize payload
        self.verify_data = {}  # reference -> data overrides for verify
        self.fail_with = None  # (status_code, message) for the next call
        self.timeout = False

    @property
    def calls(self):
        return [(request.method, request.url.path) for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if self.fail_with:
            status_code, message = self.fail_with
            self.fail_with = None
            return httpx.Response(status_code, json={"status": False, "message": message})

        path = request.url.path
        if request.method == "POST" and path == "/transaction/initialize":
            payload = json.loads(request.content)
            self.initialized[payload["reference"]] = payload
            return httpx.Response(200, json={
                "status": True,
                "message": "Authorization URL created",
                "data": {
                    "authorization_url": f"https://checkout.paystack.com/{payload['reference']}",
                    "access_code": f"ac_{payload['reference']}",
                    "reference": payload["reference"],
                },
            })

        if request.method == "GET" and path.startswith("/transaction/verify/"):
            reference = path.rsplit("/", 1)[-1]
            initialized = self.initialized.get(reference, {})
            data = {
                "status": "success",
                "reference": reference,
                "amount": initialized.get("amount", 0),
                "currency": initialized.get("currency", "GHS"),
                "paid_at": "2026-10-19T10:15:00.000Z",
                "channel": "mobile_money",
            }
            data.update(self.verify_data.get(reference, {}))
            return httpx.Response(200, json={"status": True, "message": "Verification successful", "data": data})

        return httpx.Response(404, json={"status": False, "message": "Not found"})


def sign(body: bytes) -> str:
    return compute_signature(PAYSTACK_SECRET, body)


def charge_success_body(reference: str, amount_minor: int, event: str = "charge.success") -> bytes:
    return json.dumps({
        "event": event,
        "data": {
            "reference": reference,
            "amount": amount_minor,
            "currency": "GHS",
            "status": "success",
            "channel": "card",
            "paid_at": "2026-10-19T10:15:00.000Z",
        },
    }).encode()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_paystack():
    return FakePaystack()


@pytest.fixture
def paystack_client(fake_paystack):
    config = PaystackConfig(base_url=PAYSTACK_BASE_URL, secret_key=PAYSTACK_SECRET)
    return PaystackClient(config, transport=httpx.MockTransport(fake_paystack.handler))


@pytest.fixture
def auth_service(db):
    return AuthService(db, jwt_config=settings.jwt)


@pytest.fixture
def subscription_service(db, paystack_client):
    return SubscriptionService(db, paystack_client, settings)


@pytest.fixture
def client(db, paystack_client):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_paystack_client] = lambda: paystack_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_plan(db):
    def _make(user_type="public", duration_type="monthly", price="50.00", days=30, name=None, is_active=True):
        plan = SubscriptionPlan(
            name=name or f"{user_type.title()} {duration_type.title()}",
            user_type=user_type,
            duration_type=duration_type,
            price_cedis=Decimal(price),
            duration_days=days,
            is_active=is_active,
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan

    return _make


@pytest.fixture
def make_member(db):
    def _make(university_id="10000001", **overrides):
        today = date.today()
        fields = dict(
            id=university_id,
            first_name="Ama",
            last_name="Mensah",
            email=f"{university_id}@st.ug.edu.gh",
            hall_of_residence="Legon Hall",
            member_type="student",
            issue_date=today - timedelta(days=365),
            expiry_date=today + timedelta(days=365),
            academic_year="2025/2026",
            program="BSc Computer Science",
            level="300",
            faculty="Physical and Mathematical Sciences",
            department="Computer Science",
            status="active",
            is_active=True,
        )
        fields.update(overrides)
        member = UniversityMember(**fields)
        db.add(member)
        db.commit()
        return member

    return _make


@pytest.fixture
def public_user(auth_service):
    user, _ = auth_service.register_public(RegisterPublicRequest(
        first_name="Abena",
        last_name="Addo",
        email="abena@example.com",
        phone="0241234567",
        password="supersecret",
    ))
    return user


@pytest.fixture
def auth_headers(auth_service, public_user):
    return {"Authorization": f"Bearer {auth_service.issue_token(public_user)}"}


@pytest.fixture
def charge_event():
    """Build a signed Paystack event: returns (raw_body, signature)."""
    def _build(reference, amount_minor, event="charge.success"):
        body = charge_success_body(reference, amount_minor, event=event)
        return body, sign(body)

    return _build


@pytest.fixture
def sign_payload():
    return sign


@pytest.fixture
def admin_auth_service(db):
    return AdminAuthService(db, jwt_config=settings.jwt)


@pytest.fixture
def admin_service(db):
    return AdminService(db)


@pytest.fixture
def make_admin(db):
    def _make(email="staff@uggym.test", password="adminpass", role=ROLE_ADMIN, is_active=True):
        admin = AdminUser(
            email=email,
            password_hash=hash_password(password),
            first_name="Yaw",
            last_name="Owusu",
            role=role,
            is_active=is_active,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin

    return _make


@pytest.fixture
def admin_headers(admin_auth_service, make_admin):
    admin = make_admin()
    return {"Authorization": f"Bearer {admin_auth_service.issue_token(admin)}"}


@pytest.fixture
def super_admin_headers(admin_auth_service, make_admin):
    admin = make_admin(email="root@uggym.test", role=ROLE_SUPER_ADMIN)
    return {"Authorization": f"Bearer {admin_auth_service.issue_token(admin)}"}
