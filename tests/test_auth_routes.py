"""
Tests for the account routes: signup with OTP verification, login,
Google sign-in, password management and soft deletion.
"""

from datetime import datetime, timedelta

from sqlalchemy import select

from fashionx.core.security import verify_password
from fashionx.models.user import Plan, User
from fashionx.services.auth import auth_service

SIGNUP = {"email": "New.User@Example.com ", "password": "secret123", "firstName": "New", "lastName": "User"}


async def find_user(session_maker, email: str) -> User:
    async with session_maker() as session:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


async def test_signup_verify_and_login(client, session_maker):
    response = await client.post("/api/auth/signup", json=SIGNUP)
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "new.user@example.com"

    user = await find_user(session_maker, "new.user@example.com")
    assert user.is_email_verified is False
    assert len(user.otp) == 6
    assert user.plan == Plan.FREE
    assert user.credits_balance == 3

    unverified = await client.post("/api/auth/login", json={"email": "new.user@example.com", "password": "secret123"})
    assert unverified.status_code == 401

    wrong_otp = await client.post("/api/auth/verify-email", json={"email": user.email, "otp": "xxxxxx"})
    assert wrong_otp.status_code == 400

    verified = await client.post("/api/auth/verify-email", json={"email": user.email, "otp": user.otp})
    assert verified.status_code == 200
    assert verified.json()["token"]

    client.cookies.clear()
    login = await client.post("/api/auth/login", json={"email": "NEW.USER@example.com", "password": "secret123"})
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["credits"]["balance"] == 3
    assert login.cookies.get("token") == body["token"]

    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "new.user@example.com"


async def test_signup_duplicate_email(client, make_user):
    await make_user(email="new.user@example.com")
    response = await client.post("/api/auth/signup", json=SIGNUP)
    assert response.status_code == 400
    assert response.json()["message"] == "User with this email already exists"


async def test_signup_validates_input(client):
    response = await client.post("/api/auth/signup", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid input data"
    assert response.json()["errors"]


async def test_expired_otp(client, make_user):
    user = await make_user(
        is_email_verified=False, otp="123456", otp_expires=datetime.utcnow() - timedelta(minutes=1)
    )
    response = await client.post("/api/auth/verify-email", json={"email": user.email, "otp": "123456"})
    assert response.status_code == 400


async def test_resend_otp(client, make_user, load_user):
    user = await make_user(is_email_verified=False, otp="111111")

    response = await client.post("/api/auth/resend-otp", json={"email": user.email})

    assert response.status_code == 200
    assert (await load_user(user.id)).otp != "111111"


async def test_login_failures(client, make_user):
    user = await make_user(password="secret123")
    inactive = await make_user(password="secret123", is_active=False)

    wrong = await client.post("/api/auth/login", json={"email": user.email, "password": "nope"})
    unknown = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    deactivated = await client.post("/api/auth/login", json={"email": inactive.email, "password": "secret123"})

    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid email or password"
    assert unknown.status_code == 401
    assert deactivated.status_code == 401
    assert deactivated.json()["message"] == "Account is deactivated. Please contact support."


async def test_login_backfills_uninitialized_accounts(client, make_user, load_user):
    user = await make_user(
        password="secret123", plan=None, credits_balance=0, credits_total_purchased=0, credits_total_used=0
    )

    first = await client.post("/api/auth/login", json={"email": user.email, "password": "secret123"})
    second = await client.post("/api/auth/login", json={"email": user.email, "password": "secret123"})

    assert first.status_code == second.status_code == 200
    stored = await load_user(user.id)
    assert stored.plan == Plan.FREE
    assert stored.credits_balance == 3
    assert stored.credits_total_purchased == 3
    assert stored.last_login is not None


async def test_google_login_creates_verified_account(client, session_maker, monkeypatch):
    async def fake_verify(token):
        assert token == "google-id-token"
        return {"sub": "google-123", "email": "G.User@gmail.com", "given_name": "G", "family_name": "User"}

    monkeypatch.setattr(auth_service, "verify_google_token", fake_verify)

    response = await client.post("/api/auth/google", json={"token": "google-id-token"})

    assert response.status_code == 200
    user = await find_user(session_maker, "g.user@gmail.com")
    assert user.google_id == "google-123"
    assert user.is_email_verified is True
    assert user.password_hash is None
    assert user.plan == Plan.FREE
    assert user.credits_balance == 3


async def test_google_login_links_existing_email(client, make_user, load_user, monkeypatch):
    user = await make_user(email="linked@example.com", is_email_verified=False)

    async def fake_verify(token):
        return {"sub": "google-456", "email": "linked@example.com"}

    monkeypatch.setattr(auth_service, "verify_google_token", fake_verify)

    response = await client.post("/api/auth/google", json={"token": "t"})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == user.id
    stored = await load_user(user.id)
    assert stored.google_id == "google-456"
    assert stored.is_email_verified is True


async def test_logout_clears_cookie(client):
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200
    assert 'token=""' in response.headers["set-cookie"] or "token=;" in response.headers["set-cookie"]


async def test_refresh_token(client, make_user, auth_headers):
    user = await make_user()
    response = await client.post("/api/auth/refresh-token", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["token"]


async def test_update_profile(client, make_user, load_user, auth_headers):
    user = await make_user()
    response = await client.put("/api/auth/profile", json={"firstName": "Renamed"}, headers=auth_headers(user))
    assert response.status_code == 200
    assert (await load_user(user.id)).first_name == "Renamed"


async def test_change_password(client, make_user, load_user, auth_headers):
    user = await make_user(password="secret123")
    headers = auth_headers(user)

    wrong = await client.put(
        "/api/auth/change-password", json={"currentPassword": "nope", "newPassword": "another123"}, headers=headers
    )
    ok = await client.put(
        "/api/auth/change-password", json={"currentPassword": "secret123", "newPassword": "another123"}, headers=headers
    )

    assert wrong.status_code == 400
    assert ok.status_code == 200
    assert verify_password("another123", (await load_user(user.id)).password_hash)


async def test_forgot_and_reset_password(client, make_user, load_user):
    user = await make_user(password="secret123")

    forgot = await client.post("/api/auth/forgot-password", json={"email": user.email})
    assert forgot.status_code == 200
    token = (await load_user(user.id)).password_reset_token
    assert token

    bad = await client.post("/api/auth/reset-password", json={"token": "wrong", "password": "brandnew1"})
    reset = await client.post("/api/auth/reset-password", json={"token": token, "password": "brandnew1"})

    assert bad.status_code == 400
    assert reset.status_code == 200
    stored = await load_user(user.id)
    assert stored.password_reset_token is None
    assert verify_password("brandnew1", stored.password_hash)


async def test_forgot_password_unknown_email(client):
    response = await client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 404


async def test_delete_account_is_soft(client, make_user, load_user, auth_headers):
    user = await make_user(password="secret123")
    headers = auth_headers(user)

    missing = await client.request("DELETE", "/api/auth/delete-account", json={}, headers=headers)
    deleted = await client.request("DELETE", "/api/auth/delete-account", json={"password": "secret123"}, headers=headers)

    assert missing.status_code == 400
    assert deleted.status_code == 200
    stored = await load_user(user.id)
    assert stored is not None
    assert stored.is_active is False

    client.cookies.clear()
    assert (await client.get("/api/auth/me", headers=headers)).status_code == 401


async def test_terms_acceptance(client, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)

    before = await client.get("/api/terms/status", headers=headers)
    accepted = await client.post("/api/terms/accept", json={"version": "2.0"}, headers=headers)
    after = await client.get("/api/terms/status", headers=headers)

    assert before.json()["data"]["termsAccepted"]["status"] is False
    assert accepted.status_code == 200
    terms = after.json()["data"]["termsAccepted"]
    assert terms["status"] is True
    assert terms["version"] == "2.0"
    assert terms["acceptedAt"]
