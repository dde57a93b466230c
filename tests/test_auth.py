"""
Tests for password hashing, tokens and the /api/auth routes
"""
import re

import pytest
from sqlalchemy import select

from auth_utils import (
    create_jwt,
    create_magic_link_token,
    decode_jwt,
    decode_magic_link_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from database_models import AuthIdentity
from tests.conftest import WEBHOOK_SECRET, auth_headers


def test_password_hash_round_trip():
    hashed = hash_password("Member123!")

    assert hashed != "Member123!"
    assert verify_password("Member123!", hashed) is True
    assert verify_password("wrong", hashed) is False
    assert verify_password("anything", None) is False


@pytest.mark.parametrize("password", ["Short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere", ""])
def test_weak_passwords_are_rejected(password):
    with pytest.raises(ValueError):
        validate_password_strength(password)


def test_strong_password_is_accepted():
    validate_password_strength("Str0ngPass")


def test_session_and_magic_link_tokens_are_not_interchangeable():
    session_token = create_jwt("user-1")
    link_token = create_magic_link_token("user-1", "http://test/onboarding")

    assert decode_jwt(session_token)["sub"] == "user-1"
    assert decode_jwt(link_token) is None
    assert decode_magic_link_token(session_token) is None
    assert decode_magic_link_token(link_token)["next"] == "http://test/onboarding"


def test_expired_magic_link_is_rejected():
    token = create_magic_link_token("user-1", "http://test/onboarding", expires_minutes=-1)

    assert decode_magic_link_token(token) is None


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client, make_member):
    user_id = await make_member(email="member@example.com", password="Member123!")

    response = await client.post("/api/auth/login", json={"email": "Member@Example.com", "password": "Member123!"})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "user_id": user_id}
    assert "auth_token=" in response.headers["set-cookie"]
    assert "HttpOnly" in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_login_with_wrong_password_is_rejected(client, make_member):
    await make_member(email="member@example.com", password="Member123!")

    response = await client.post("/api/auth/login", json={"email": "member@example.com", "password": "nope"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_requires_active_subscription(client, make_member):
    await make_member(email="member@example.com", password="Member123!", status="canceled")

    response = await client.post("/api/auth/login", json={"email": "member@example.com", "password": "Member123!"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_magic_link_request_does_not_reveal_unknown_emails(client, make_member, mailer):
    await make_member(email="member@example.com")

    known = await client.post("/api/auth/magic-link", json={"email": "member@example.com"})
    unknown = await client.post("/api/auth/magic-link", json={"email": "stranger@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [m["to"] for m in mailer.sent] == ["member@example.com"]


@pytest.mark.asyncio
async def test_magic_link_ignores_forwarded_host_headers(client, make_member, mailer):
    await make_member(email="victim@example.com")

    response = await client.post(
        "/api/auth/magic-link",
        json={"email": "victim@example.com"},
        headers={"X-Forwarded-Host": "evil.example", "X-Forwarded-Proto": "https"},
    )

    assert response.status_code == 200
    body = mailer.sent[0]["body"]
    assert "evil.example" not in body
    assert "https://slimpathai.com/api/auth/verify?token=" in body
    token = re.search(r"token=([\w\-\.%]+)", body).group(1)
    assert decode_magic_link_token(token)["next"] == "https://slimpathai.com/onboarding"


@pytest.mark.asyncio
async def test_sign_in_link_from_webhook_confirms_identity_and_redirects(client, session_factory, mailer):
    await client.post(
        f"/api/webhook?secret={WEBHOOK_SECRET}",
        json={"email": "new@example.com", "profile_type": "cortisol", "subscription_plan": "monthly", "amount": 0},
    )
    token = re.search(r"token=([\w\-\.%]+)", mailer.sent[0]["body"]).group(1)

    response = await client.get("/api/auth/verify", params={"token": token})

    assert response.status_code == 303
    assert response.headers["location"] == "http://test/onboarding"
    assert "auth_token=" in response.headers["set-cookie"]
    async with session_factory() as session:
        identity = (await session.execute(select(AuthIdentity))).scalar_one()
    assert identity.email_confirmed_at is not None


@pytest.mark.asyncio
async def test_verify_rejects_bad_token(client):
    response = await client.get("/api/auth/verify", params={"token": "not-a-token"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_me_returns_profile(client, make_member):
    user_id = await make_member(email="admin@slimpath.test")

    response = await client.get("/api/auth/me", headers=auth_headers(user_id))

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == user_id
    assert data["profile_type"] == "hormonal"
    assert data["is_admin"] is True


@pytest.mark.asyncio
async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_set_password_validates_and_updates(client, make_member, session_factory):
    user_id = await make_member(email="member@example.com", password=None)
    headers = auth_headers(user_id)

    weak = await client.post(
        "/api/auth/set-password", json={"password": "weak", "confirm_password": "weak"}, headers=headers
    )
    mismatch = await client.post(
        "/api/auth/set-password", json={"password": "Str0ngPass", "confirm_password": "Str0ngPass!"}, headers=headers
    )
    ok = await client.post(
        "/api/auth/set-password", json={"password": "Str0ngPass", "confirm_password": "Str0ngPass"}, headers=headers
    )

    assert weak.status_code == 400
    assert mismatch.status_code == 400
    assert ok.status_code == 200

    login = await client.post("/api/auth/login", json={"email": "member@example.com", "password": "Str0ngPass"})
    assert login.status_code == 200
    async with session_factory() as session:
        identity = (await session.execute(select(AuthIdentity))).scalar_one()
    assert identity.user_metadata["password_set"] is True


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    response = await client.post("/api/auth/logout")

    assert response.status_code == 200
    assert "Max-Age=0" in response.headers["set-cookie"]
