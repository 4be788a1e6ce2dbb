from sqlalchemy import func, select

from conftest import PASSWORD, make_user
from sales.models import Business, Customer, Product, Sale, SaleItem
from users.models import AccessToken, Otp, User

PHONE = {"country_code": "255", "phone": "123456789"}


async def login(client, password=PASSWORD):
    return await client.post("/login", json={**PHONE, "password": password})


async def test_login_issues_token(client, db):
    await make_user(db)

    response = await login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["data"]["user"]["phone"] == "123456789"
    token_id, _, secret = body["data"]["token"].partition("|")
    assert token_id.isdigit() and secret


async def test_login_with_wrong_password(client, db):
    await make_user(db)

    response = await login(client, password="Wrong123!@#")

    assert response.status_code == 401
    assert response.json() == {"status": "error", "message": "Invalid credentials"}


async def test_login_unknown_or_incomplete_user(client, db):
    assert (await login(client)).status_code == 401

    await make_user(db, password=None)
    assert (await login(client)).status_code == 401


async def test_tokens_coexist_and_logout_revokes_all(client, db):
    await make_user(db)
    first = (await login(client)).json()["data"]["token"]
    second = (await login(client)).json()["data"]["token"]

    me = await client.get("/users/me", headers={"Authorization": f"Bearer {second}"})
    assert me.status_code == 200

    response = await client.post("/logout", headers={"Authorization": f"Bearer {first}"})
    assert response.status_code == 200

    for token in (first, second):
        again = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert again.status_code == 401


async def test_protected_route_requires_token(client):
    assert (await client.get("/users/me")).status_code == 401
    bogus = await client.get("/users/me", headers={"Authorization": "Bearer 1|nope"})
    assert bogus.status_code == 401


async def test_forgot_password_for_incomplete_registration(client, db):
    await make_user(db, password=None)

    response = await client.post("/forgot-password", json=PHONE)

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Your registration is incomplete. Please complete your registration "
        "instead of resetting password."
    )


async def test_forgot_password_unknown_user(client):
    response = await client.post("/forgot-password", json=PHONE)

    assert response.status_code == 404


async def test_password_reset_flow_revokes_tokens(client, db, sms):
    await make_user(db)
    old_token = (await login(client)).json()["data"]["token"]

    response = await client.post("/forgot-password", json=PHONE)
    assert response.status_code == 200
    assert response.json()["message"] == "OTP sent successfully for password reset"

    code = (await db.execute(select(Otp.code))).scalar_one()
    verified = await client.post("/verify-reset-otp", json={**PHONE, "code": code})
    assert verified.status_code == 200

    reset = await client.post("/reset-password", json={**PHONE, "password": "Fresh456$"})
    assert reset.status_code == 200
    assert await db.scalar(select(func.count()).select_from(AccessToken)) == 0

    stale = await client.get("/users/me", headers={"Authorization": f"Bearer {old_token}"})
    assert stale.status_code == 401
    assert (await login(client)).status_code == 401
    assert (await login(client, password="Fresh456$")).status_code == 200


async def test_reset_password_enforces_policy(client, db):
    await make_user(db)

    response = await client.post("/reset-password", json={**PHONE, "password": "short1!"})

    assert response.status_code == 422
    assert "password" in response.json()["errors"]


async def test_update_password(client, db):
    await make_user(db)
    token = (await login(client)).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong = await client.patch(
        "/update-password", json={"old_password": "Nope123!@#", "new_password": "Other789&"}, headers=headers
    )
    assert wrong.status_code == 401

    same = await client.patch(
        "/update-password", json={"old_password": PASSWORD, "new_password": PASSWORD}, headers=headers
    )
    assert same.status_code == 422

    ok = await client.patch(
        "/update-password", json={"old_password": PASSWORD, "new_password": "Other789&"}, headers=headers
    )
    assert ok.status_code == 200
    assert (await login(client, password="Other789&")).status_code == 200


async def test_update_profile_rejects_taken_email(client, db):
    await make_user(db, phone="111111111", email="taken@example.com")
    await make_user(db)
    token = (await login(client)).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    clash = await client.patch("/update-profile", json={"email": "taken@example.com"}, headers=headers)
    assert clash.status_code == 422
    assert "email" in clash.json()["errors"]

    ok = await client.patch(
        "/update-profile", json={"first_name": "Neema", "email": "neema@example.com"}, headers=headers
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["first_name"] == "Neema"


async def test_delete_account(client, db):
    await make_user(db)
    token = (await login(client)).json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong = await client.request("DELETE", "/delete-account", json={"password": "Nope123!@#"}, headers=headers)
    assert wrong.status_code == 401

    response = await client.request("DELETE", "/delete-account", json={"password": PASSWORD}, headers=headers)
    assert response.status_code == 200
    assert await db.scalar(select(func.count()).select_from(User)) == 0


async def test_list_users(client, db):
    await make_user(db)
    await make_user(db, phone="987654321", password=None)
    token = (await login(client)).json()["data"]["token"]

    response = await client.get("/users", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    phones = {user["phone"] for user in response.json()["data"]["users"]}
    assert phones == {"123456789", "987654321"}


async def test_login_with_password_over_byte_limit(client, db):
    await make_user(db)

    response = await login(client, password="Aa1£" * 16)

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


async def test_delete_account_removes_recorded_sales(client, db, shop, auth_headers):
    rice = shop["rice"]
    sale = {
        "business_id": shop["business"].id,
        "customer_id": shop["customer"].id,
        "items": [{"product_id": rice.id, "quantity": 2, "unit_price": 20, "total": 40}],
    }
    assert (await client.post("/sales", json=sale, headers=auth_headers)).status_code == 201

    response = await client.request(
        "DELETE", "/delete-account", json={"password": PASSWORD}, headers=auth_headers
    )

    assert response.status_code == 200
    for model in (User, Business, Customer, Product, Sale, SaleItem):
        assert await db.scalar(select(func.count()).select_from(model)) == 0
