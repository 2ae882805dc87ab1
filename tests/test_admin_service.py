from datetime import timedelta
from decimal import Decimal

import pytest

from app.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    InvalidCredentialsError,
    InvalidFormatError,
    NotFoundError,
    PermissionDeniedError,
    PlanMismatchError,
)
from app.models import AdminUser, PaymentTransaction
from app.schemas.admin import CreateAdminRequest, CreatePlanRequest, UpdatePlanRequest
from app.schemas.auth import PublicCredentials, RegisterUniversityRequest


def _transaction(db, reference):
    return db.query(PaymentTransaction).filter(PaymentTransaction.payment_reference == reference).one()


@pytest.fixture
def student(auth_service, make_member):
    make_member("10000001")
    user, _ = auth_service.register_university(RegisterUniversityRequest(university_id="10000001", pin="1234"))
    return user


class TestAdminAuth:
    def test_login_stamps_last_login_and_token_resolves_to_admin(
        self, admin_auth_service, auth_service, make_admin
    ):
        make_admin(email="staff@uggym.test", password="adminpass")

        admin, token = admin_auth_service.login(" Staff@UGGym.test ", "adminpass")

        assert admin.last_login_at is not None
        principal = auth_service.verify_token(token)
        assert isinstance(principal, AdminUser)
        assert principal.user_type == "admin"

    @pytest.mark.parametrize("password, is_active", [("wrong-pass", True), ("adminpass", False)])
    def test_login_rejects_bad_password_and_inactive_admin(
        self, admin_auth_service, make_admin, password, is_active
    ):
        make_admin(password="adminpass", is_active=is_active)
        with pytest.raises(InvalidCredentialsError, match="Invalid email or password"):
            admin_auth_service.login("staff@uggym.test", password)

    def test_change_password(self, admin_auth_service, make_admin):
        admin = make_admin(password="adminpass")

        with pytest.raises(InvalidFormatError, match="Current password is incorrect"):
            admin_auth_service.change_password(admin, "nope", "newpass99")
        admin_auth_service.change_password(admin, "adminpass", "newpass99")

        assert admin_auth_service.login("staff@uggym.test", "newpass99")[0].id == admin.id

    def test_create_admin(self, admin_auth_service):
        request = CreateAdminRequest(
            email="New@UGGym.test", password="secret1", first_name="Esi", last_name="Quaye", role="admin"
        )

        admin = admin_auth_service.create_admin(request)

        assert admin.email == "new@uggym.test"
        assert [a.id for a in admin_auth_service.list_admins()] == [admin.id]
        with pytest.raises(AlreadyExistsError):
            admin_auth_service.create_admin(request)

    def test_create_admin_rejects_unknown_role(self, admin_auth_service):
        with pytest.raises(InvalidFormatError, match="Role must be"):
            admin_auth_service.create_admin(CreateAdminRequest(
                email="x@uggym.test", password="secret1", first_name="Esi", last_name="Quaye", role="owner"
            ))


class TestMembers:
    def test_list_merges_public_and_university_users(
        self, admin_service, subscription_service, public_user, student, make_plan
    ):
        plan = make_plan()
        subscription_service.verify_payment(
            subscription_service.create_subscription(public_user, plan.id).payment_reference
        )

        users, total = admin_service.list_users()
        assert total == 2
        by_type = {user.user_type: user for user in users}
        assert by_type["public"].has_active_subscription is True
        assert by_type["student"].has_active_subscription is False
        assert by_type["student"].university_id == "10000001"

        students, _ = admin_service.list_users(user_type="student")
        assert [u.id for u in students] == [student.id]
        subscribers, _ = admin_service.list_users(has_active_subscription=True)
        assert [u.id for u in subscribers] == [public_user.id]
        found, _ = admin_service.list_users(search="abena")
        assert [u.id for u in found] == [public_user.id]

    def test_list_paginates(self, admin_service, public_user, student):
        first, total = admin_service.list_users(page=1, limit=1)
        second, _ = admin_service.list_users(page=2, limit=1)
        assert total == 2
        assert {first[0].id, second[0].id} == {public_user.id, student.id}

    def test_list_rejects_unknown_user_type(self, admin_service):
        with pytest.raises(InvalidFormatError):
            admin_service.list_users(user_type="alumni")

    def test_deactivation_blocks_login_and_existing_tokens(self, admin_service, auth_service, public_user):
        token = auth_service.issue_token(public_user)

        admin_service.set_user_active(public_user.id, False)

        with pytest.raises(NotFoundError):
            auth_service.verify_token(token)
        with pytest.raises(InvalidCredentialsError):
            auth_service.login(PublicCredentials(email="abena@example.com", password="supersecret"))

        admin_service.set_user_active(public_user.id, True)
        assert auth_service.verify_token(token).id == public_user.id

    def test_set_active_unknown_user(self, admin_service):
        with pytest.raises(NotFoundError, match="User not found"):
            admin_service.set_user_active("missing", False)


class TestWalkInGate:
    def test_verify_refuses_walk_in_when_not_allowed(self, subscription_service, public_user, make_plan):
        plan = make_plan(duration_type="walk-in", price="25.00", days=1)
        created = subscription_service.create_subscription(public_user, plan.id)

        with pytest.raises(PermissionDeniedError):
            subscription_service.verify_payment(created.payment_reference, walk_in_allowed=False)
        assert subscription_service.find_by_reference(created.payment_reference).status == "pending"

    def test_online_verify_ignores_the_gate(self, subscription_service, public_user, make_plan):
        plan = make_plan(price="50.00")
        created = subscription_service.create_subscription(public_user, plan.id)

        result = subscription_service.verify_payment(created.payment_reference, walk_in_allowed=False)

        assert result.subscription.status == "active"


class TestStaffLifecycle:
    def test_walk_in_subscription_is_active_immediately(
        self, subscription_service, public_user, make_plan, fake_paystack, db
    ):
        plan = make_plan(duration_type="monthly", price="150.00", days=30)

        subscription = subscription_service.create_walk_in_subscription(public_user.id, plan.id, Decimal("150.00"))

        assert subscription.status == "active"
        assert subscription.payment_status == "success"
        assert subscription.end_date - subscription.start_date == timedelta(days=30)
        assert subscription.amount_paid == Decimal("150.00")
        transaction = _transaction(db, subscription.payment_reference)
        assert transaction.payment_method == "walk-in"
        assert transaction.status == "success"
        assert fake_paystack.requests == []

    def test_walk_in_checks_user_and_plan(self, subscription_service, public_user, student, make_plan):
        public_plan = make_plan("public")
        student_plan = make_plan("student")

        with pytest.raises(NotFoundError, match="User not found"):
            subscription_service.create_walk_in_subscription("missing", public_plan.id, Decimal("50.00"))
        with pytest.raises(PlanMismatchError, match="Plan is for student users, but user is public"):
            subscription_service.create_walk_in_subscription(public_user.id, student_plan.id, Decimal("50.00"))

        subscription_service.create_walk_in_subscription(student.id, student_plan.id, Decimal("50.00"))
        with pytest.raises(ConflictError):
            subscription_service.create_walk_in_subscription(student.id, student_plan.id, Decimal("50.00"))

    def test_complete_pending_walk_in_payment(self, subscription_service, public_user, make_plan, db):
        plan = make_plan(duration_type="walk-in", price="25.00", days=1)
        created = subscription_service.create_subscription(public_user, plan.id)

        transaction = subscription_service.complete_payment(
            created.payment_reference, Decimal("25.00"), "cash", notes="paid at desk"
        )

        assert transaction.status == "success"
        assert transaction.payment_method == "cash"
        assert transaction.gateway_response == "Walk-in payment completed by admin. Notes: paid at desk"
        subscription = subscription_service.find_by_reference(created.payment_reference)
        assert subscription.status == "active"
        assert subscription.amount_paid == Decimal("25.00")

        with pytest.raises(ConflictError, match="already completed"):
            subscription_service.complete_payment(created.payment_reference, Decimal("25.00"), "cash")

    def test_complete_unknown_or_cancelled(self, subscription_service, public_user, make_plan):
        with pytest.raises(NotFoundError):
            subscription_service.complete_payment("GYM_0_NOPE00", Decimal("25.00"), "cash")

        plan = make_plan(duration_type="walk-in", price="25.00", days=1)
        created = subscription_service.create_subscription(public_user, plan.id)
        subscription_service.cancel_subscription(created.subscription.id)
        with pytest.raises(ConflictError):
            subscription_service.complete_payment(created.payment_reference, Decimal("25.00"), "cash")

    def test_cancel_is_terminal(self, subscription_service, public_user, make_plan):
        plan = make_plan(price="50.00")
        created = subscription_service.create_subscription(public_user, plan.id)
        subscription_service.verify_payment(created.payment_reference)

        cancelled = subscription_service.cancel_subscription(created.subscription.id, reason="moved away")

        assert cancelled.status == "cancelled"
        assert subscription_service.get_active_subscription(public_user.id) is None
        with pytest.raises(ConflictError, match="cannot be cancelled"):
            subscription_service.cancel_subscription(created.subscription.id)
        with pytest.raises(NotFoundError):
            subscription_service.cancel_subscription("missing")

    def test_extend_active_only(self, subscription_service, public_user, make_plan):
        plan = make_plan(price="50.00", days=30)
        created = subscription_service.create_subscription(public_user, plan.id)

        with pytest.raises(NotFoundError, match="Active subscription not found"):
            subscription_service.extend_subscription(created.subscription.id, 7)

        active = subscription_service.verify_payment(created.payment_reference).subscription
        end_date = active.end_date
        extended = subscription_service.extend_subscription(active.id, 7)

        assert extended.end_date - end_date == timedelta(days=7)


class TestPlanCatalog:
    def test_create_plan_rejects_duplicates_and_unknown_kinds(self, admin_service):
        request = CreatePlanRequest(
            name="Staff Semester", user_type="staff", duration_type="semester",
            price_cedis=Decimal("300.00"), duration_days=120,
        )

        plan = admin_service.create_plan(request)

        assert plan.is_active is True
        with pytest.raises(AlreadyExistsError):
            admin_service.create_plan(request)
        with pytest.raises(InvalidFormatError):
            admin_service.create_plan(request.model_copy(update={"duration_type": "weekly"}))
        with pytest.raises(InvalidFormatError):
            admin_service.create_plan(request.model_copy(update={"user_type": "alumni"}))

    def test_update_plan(self, admin_service, subscription_service, make_plan):
        plan = make_plan(price="50.00")

        updated = admin_service.update_plan(plan.id, UpdatePlanRequest(price_cedis=Decimal("60.00"), is_active=False))

        assert updated.price_cedis == Decimal("60.00")
        assert subscription_service.list_plans() == []
        assert [p.id for p in admin_service.list_all_plans()] == [plan.id]
        with pytest.raises(InvalidFormatError, match="No valid fields"):
            admin_service.update_plan(plan.id, UpdatePlanRequest())
        with pytest.raises(NotFoundError):
            admin_service.update_plan("missing", UpdatePlanRequest(name="Renamed"))


class TestListings:
    def test_subscriptions_and_payments(self, admin_service, subscription_service, public_user, student, make_plan):
        public_plan = make_plan("public", price="50.00")
        student_plan = make_plan("student", price="20.00")
        online = subscription_service.create_subscription(public_user, public_plan.id)
        walk_in = subscription_service.create_walk_in_subscription(student.id, student_plan.id, Decimal("20.00"))

        _, total = admin_service.list_subscriptions()
        assert total == 2
        active, _ = admin_service.list_subscriptions(status="active")
        assert [s.id for s in active] == [walk_in.id]
        students, _ = admin_service.list_subscriptions(user_type="student")
        assert [s.id for s in students] == [walk_in.id]

        subscription, payments = admin_service.get_subscription(online.subscription.id)
        assert subscription.payment_reference == online.payment_reference
        assert [p.status for p in payments] == ["pending"]

        walk_in_payments, _ = admin_service.list_payments(method="walk-in")
        assert [p.payment_reference for p in walk_in_payments] == [walk_in.payment_reference]
        pending, pending_total = admin_service.list_payments(status="pending")
        assert pending_total == 1
        assert pending[0].payment_reference == online.payment_reference
