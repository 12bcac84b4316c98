import sessions
from models import OwnerSession, ShopOwner

PASSWORD = "secret123"


async def test_signup_starts_session_and_mails_code(owner_client, mailbox):
    owner = await owner_client("anne@example.com", name="Anne")

    response = await owner.get("/api/auth/check-auth")
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["email"] == "anne@example.com"
    assert user["isVerified"] is False
    assert "passwordHash" not in user and "password_hash" not in user

    assert len(mailbox.verification_code("anne@example.com")) == 6
    assert await OwnerSession.count() == 1


async def test_verify_email(owner_client, mailbox, outbox):
    owner = await owner_client("anne@example.com")

    response = await owner.post("/api/auth/verify-email", json={"code": "000000"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid or expired verification code"}

    code = mailbox.verification_code("anne@example.com")
    response = await owner.post("/api/auth/verify-email", json={"code": code})
    assert response.status_code == 200
    assert response.json()["user"]["isVerified"] is True
    assert outbox[-1]["Subject"] == "Welcome to Places Guide!"

    stored = await ShopOwner.find_one(ShopOwner.email == "anne@example.com")
    assert stored.verification_token is None

    # a code can only be used once
    response = await owner.post("/api/auth/verify-email", json={"code": code})
    assert response.status_code == 400


async def test_duplicate_signup_is_rejected(owner_client, client):
    await owner_client("anne@example.com")
    response = await client.post("/api/auth/signup",
                                 json={"email": "anne@example.com", "password": PASSWORD, "name": "Other"})
    assert response.status_code == 409
    assert response.json()["message"] == "User already exists"
    assert await ShopOwner.count() == 1


async def test_signup_validation(client):
    response = await client.post("/api/auth/signup", json={"email": "not-an-email", "password": PASSWORD, "name": "A"})
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = await client.post("/api/auth/signup", json={"email": "a@example.com", "password": "123", "name": "A"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("password")

    response = await client.post("/api/auth/signup", json={"email": "a@example.com", "password": PASSWORD, "name": "  "})
    assert response.status_code == 400
    assert await ShopOwner.count() == 0


async def test_login(owner_client, make_client):
    await owner_client("anne@example.com")
    c = make_client()

    response = await c.post("/api/auth/login", json={"email": "anne@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}

    response = await c.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert response.status_code == 401

    response = await c.post("/api/auth/login", json={"email": "anne@example.com", "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["user"]["lastLogin"] is not None
    assert (await c.get("/api/auth/check-auth")).status_code == 200


async def test_check_auth_requires_session(client):
    response = await client.get("/api/auth/check-auth")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Unauthorized"}


async def test_logout_invalidates_session(owner_client, make_client):
    owner = await owner_client("anne@example.com")
    session_id = owner.cookies.get("sid")
    assert session_id

    response = await owner.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged out successfully"}
    assert await OwnerSession.count() == 0

    # replaying the old cookie must not work either
    replay = make_client()
    response = await replay.get("/api/auth/check-auth", headers={"Cookie": f"sid={session_id}"})
    assert response.status_code == 401


async def test_logout_clears_cookie_with_the_flags_it_was_set_with(owner_client, monkeypatch):
    owner = await owner_client("anne@example.com")
    monkeypatch.setattr(sessions, "COOKIE_SECURE", True)

    response = await owner.post("/api/auth/logout")
    cleared = response.headers["set-cookie"].lower()
    assert cleared.startswith("sid=")
    assert "secure" in cleared
    assert "samesite=none" in cleared
    assert "httponly" in cleared


async def test_bearer_token_is_not_a_session(client, site_user):
    _, headers = await site_user()
    response = await client.get("/api/auth/check-auth", headers=headers)
    assert response.status_code == 401


async def test_password_reset_flow(owner_client, make_client, mailbox):
    await owner_client("anne@example.com")
    c = make_client()

    response = await c.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 404

    response = await c.post("/api/auth/forgot-password", json={"email": "anne@example.com"})
    assert response.status_code == 200
    token = mailbox.reset_token("anne@example.com")

    response = await c.post("/api/auth/reset-password/not-a-token", json={"password": "brand-new-pass"})
    assert response.status_code == 400

    response = await c.post(f"/api/auth/reset-password/{token}", json={"password": "brand-new-pass"})
    assert response.status_code == 200

    old = await c.post("/api/auth/login", json={"email": "anne@example.com", "password": PASSWORD})
    assert old.status_code == 401
    new = await c.post("/api/auth/login", json={"email": "anne@example.com", "password": "brand-new-pass"})
    assert new.status_code == 200

    # the token is single use
    again = await c.post(f"/api/auth/reset-password/{token}", json={"password": "another-pass"})
    assert again.status_code == 400


async def test_change_password(owner_client):
    owner = await owner_client("anne@example.com")

    response = await owner.post("/api/auth/change-password",
                                json={"currentPassword": "wrong-password", "newPassword": "newpass123"})
    assert response.status_code == 400

    response = await owner.post("/api/auth/change-password",
                                json={"currentPassword": PASSWORD, "newPassword": PASSWORD})
    assert response.status_code == 400

    response = await owner.post("/api/auth/change-password",
                                json={"currentPassword": PASSWORD, "newPassword": "newpass123"})
    assert response.status_code == 200

    login = await owner.post("/api/auth/login", json={"email": "anne@example.com", "password": "newpass123"})
    assert login.status_code == 200


async def test_update_profile(owner_client):
    await owner_client("taken@example.com")
    owner = await owner_client("anne@example.com")

    response = await owner.post("/api/auth/update-profile", json={"name": "Anne", "email": "taken@example.com"})
    assert response.status_code == 409

    response = await owner.post("/api/auth/update-profile", json={"name": "Anne B", "email": "anne.b@example.com"})
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Anne B"
    assert response.json()["user"]["email"] == "anne.b@example.com"

    # the session still resolves to the same account
    response = await owner.get("/api/auth/check-auth")
    assert response.json()["user"]["email"] == "anne.b@example.com"
