def _member_headers(auth_service, user):
    return {"Authorization": f"Bearer {auth_service.issue_token(user)}"}


def test_admin_login_and_profile(client, make_admin):
    make_admin(email="staff@uggym.test", password="adminpass")

    login = client.post("/auth/admin/login", json={"email": "staff@uggym.test", "password": "adminpass"})

    assert login.status_code == 200
    data = login.json()["data"]
    assert data["admin"]["role"] == "admin"
    assert "passwordHash" not in data["admin"]
    headers = {"Authorization": f"Bearer {data['token']}"}

    me = client.get("/auth/admin/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "staff@uggym.test"
    assert client.post("/auth/admin/logout", headers=headers).json()["message"] == "Logout successful"


def test_admin_login_wrong_password(client, make_admin):
    make_admin(password="adminpass")
    response = client.post("/auth/admin/login", json={"email": "staff@uggym.test", "password": "wrongpass"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_admin_and_member_tokens_stay_on_their_side(client, auth_service, public_user, admin_headers):
    member_headers = _member_headers(auth_service, public_user)

    assert client.get("/admin/users", headers=member_headers).status_code == 403
    assert client.get("/auth/admin/me", headers=member_headers).json()["message"] == "Insufficient permissions"
    assert client.get("/auth/profile", headers=admin_headers).status_code == 403
    assert client.get("/subscriptions/my-subscriptions", headers=admin_headers).status_code == 403
    assert client.get("/admin/users").status_code == 401


def test_only_super_admins_manage_admins(client, admin_headers, super_admin_headers):
    body = {
        "email": "desk@uggym.test",
        "password": "secret1",
        "firstName": "Esi",
        "lastName": "Quaye",
        "role": "admin",
    }

    denied = client.post("/auth/admin/create", json=body, headers=admin_headers)
    created = client.post("/auth/admin/create", json=body, headers=super_admin_headers)
    duplicate = client.post("/auth/admin/create", json=body, headers=super_admin_headers)

    assert denied.status_code == 403
    assert denied.json()["message"] == "Super admin privileges required"
    assert created.status_code == 201
    assert created.json()["data"]["email"] == "desk@uggym.test"
    assert duplicate.status_code == 409
    emails = {a["email"] for a in client.get("/auth/admin/all", headers=super_admin_headers).json()["data"]}
    assert "desk@uggym.test" in emails


def test_deactivate_and_reactivate_user(client, auth_service, public_user, admin_headers):
    member_headers = _member_headers(auth_service, public_user)

    response = client.patch(f"/admin/users/{public_user.id}/deactivate", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["isActive"] is False
    assert client.get("/auth/profile", headers=member_headers).status_code == 401
    login = client.post("/auth/login/public", json={"email": "abena@example.com", "password": "supersecret"})
    assert login.status_code == 401

    response = client.patch(f"/admin/users/{public_user.id}/activate", headers=admin_headers)
    assert response.json()["message"] == "User activated successfully"
    assert client.get("/auth/profile", headers=member_headers).status_code == 200

    missing = client.patch("/admin/users/nope/activate", headers=admin_headers)
    assert missing.status_code == 404


def test_list_users(client, public_user, admin_headers):
    response = client.get("/admin/users", params={"userType": "public", "limit": 5}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert [user["email"] for user in data["users"]] == ["abena@example.com"]
    assert data["users"][0]["hasActiveSubscription"] is False
    assert data["pagination"] == {"page": 1, "limit": 5, "total": 1, "totalPages": 1}


def test_walk_in_subscription_then_extend_and_cancel(client, public_user, make_plan, admin_headers, fake_paystack):
    plan = make_plan(price="150.00", days=30)

    created = client.post(
        "/admin/subscriptions/walk-in",
        json={"userId": public_user.id, "planId": plan.id, "amountPaid": 150},
        headers=admin_headers,
    )

    assert created.status_code == 201
    subscription = created.json()["data"]
    assert subscription["status"] == "active"
    assert fake_paystack.requests == []

    extended = client.patch(
        f"/admin/subscriptions/{subscription['id']}/extend", json={"days": 5}, headers=admin_headers
    )
    assert extended.status_code == 200
    assert extended.json()["message"] == "Subscription extended by 5 days"
    assert extended.json()["data"]["endDate"] > subscription["endDate"]

    too_long = client.patch(
        f"/admin/subscriptions/{subscription['id']}/extend", json={"days": 400}, headers=admin_headers
    )
    assert too_long.status_code == 400

    cancelled = client.patch(
        f"/admin/subscriptions/{subscription['id']}/cancel", json={"reason": "refund"}, headers=admin_headers
    )
    assert cancelled.json()["data"]["status"] == "cancelled"
    again = client.patch(f"/admin/subscriptions/{subscription['id']}/cancel", headers=admin_headers)
    assert again.status_code == 409

    detail = client.get(f"/admin/subscriptions/{subscription['id']}", headers=admin_headers).json()["data"]
    assert detail["status"] == "cancelled"
    assert [p["paymentMethod"] for p in detail["payments"]] == ["walk-in"]


def test_complete_walk_in_payment(client, auth_service, public_user, make_plan, admin_headers):
    plan = make_plan(duration_type="walk-in", price="25.00", days=1)
    reference = client.post(
        "/subscriptions/subscribe", json={"planId": plan.id}, headers=_member_headers(auth_service, public_user)
    ).json()["data"]["paymentReference"]

    response = client.patch(
        f"/admin/payments/{reference}/complete",
        json={"amountPaid": 25, "paymentMethod": "cash", "notes": "front desk"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "success"
    assert response.json()["data"]["paymentMethod"] == "cash"
    active = client.get(
        "/subscriptions/my-active-subscription", headers=_member_headers(auth_service, public_user)
    ).json()["data"]
    assert active["paymentReference"] == reference

    repeat = client.patch(
        f"/admin/payments/{reference}/complete",
        json={"amountPaid": 25, "paymentMethod": "cash"},
        headers=admin_headers,
    )
    assert repeat.status_code == 409
    payments = client.get("/admin/payments", params={"method": "cash"}, headers=admin_headers).json()["data"]
    assert payments["pagination"]["total"] == 1


def test_plan_management(client, admin_headers):
    body = {
        "name": "Student Semester",
        "userType": "student",
        "durationType": "semester",
        "priceCedis": 200,
        "durationDays": 120,
    }

    created = client.post("/admin/subscription-plans", json=body, headers=admin_headers)
    duplicate = client.post("/admin/subscription-plans", json=body, headers=admin_headers)

    assert created.status_code == 201
    assert duplicate.status_code == 409
    plan_id = created.json()["data"]["id"]

    updated = client.put(
        f"/admin/subscription-plans/{plan_id}", json={"isActive": False}, headers=admin_headers
    )
    assert updated.json()["data"]["isActive"] is False
    assert client.get("/subscriptions/plans/student").json()["data"] == []
    listed = client.get("/admin/subscription-plans", headers=admin_headers).json()["data"]
    assert [plan["id"] for plan in listed] == [plan_id]
