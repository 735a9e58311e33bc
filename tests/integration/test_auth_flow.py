"""
Integration tests for signup, login, profile and progress.
"""

from datetime import datetime, timedelta, timezone

import pytest

from dropview.core.security import security_manager
from dropview.repositories.user_repository import UserRepository
from dropview.services.auth_service import AuthService
from dropview.services.referral_service import ReferralService


def auth_headers(token: str):
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.integration
class TestSignup:
    @pytest.mark.asyncio
    async def test_signup_token_resolves_to_new_user(self, client, register):
        body = await register()

        assert body["user"]["username"] == "jane@example.com"
        assert "hashed_password" not in body["user"]

        response = await client.get("/api/auth/user", headers=auth_headers(body["token"]))

        assert response.status_code == 200
        profile = response.json()
        assert profile["id"] == body["user"]["id"]
        assert profile["address"] == {"street": "1 Main St", "city": "Springfield", "zip": "12345"}
        assert profile["product_preferences"] == ["skincare", "snacks"]
        assert len(profile["referral_code"]) == 8

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, register, session_factory):
        await register()

        async with session_factory() as session:
            user = await UserRepository(session).get_by_username("jane@example.com")

        assert user.hashed_password != "s3cret-pass"
        assert security_manager.verify_password("s3cret-pass", user.hashed_password)

    @pytest.mark.asyncio
    async def test_duplicate_username_is_rejected(self, client, register, signup_data):
        await register()

        response = await client.post(
            "/api/auth/user/signup",
            json=signup_data(username="JANE@example.com", phone="555-0199"),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Email already in use. Try a different one."}

    @pytest.mark.asyncio
    async def test_missing_fields_are_reported(self, client, signup_data):
        payload = signup_data(product_preferences=[])
        del payload["city"]

        response = await client.post("/api/auth/user/signup", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert any(line.startswith("city") for line in body["details"])
        assert any(line.startswith("product_preferences") for line in body["details"])

    @pytest.mark.asyncio
    async def test_unknown_referral_code(self, client, signup_data):
        response = await client.post(
            "/api/auth/user/signup", json=signup_data(referral_code="NOPE0000")
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid referral code"}

    @pytest.mark.asyncio
    async def test_referral_is_credited(self, client, register):
        jane = await register()
        bob = await register(
            username="bob@example.com",
            phone="555-0101",
            name="Bob",
            referral_code=jane["user"]["referral_code"].lower(),
        )

        assert bob["user"]["referred_by_id"] == jane["user"]["id"]

        response = await client.get("/api/auth/user", headers=auth_headers(jane["token"]))
        assert response.json()["referrals_count"] == 1


@pytest.mark.integration
class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_token_and_starts_streak(self, client, register):
        await register()

        response = await client.post(
            "/api/auth/user/login",
            json={"username": "Jane@Example.com", "password": "s3cret-pass"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"

        profile = await client.get("/api/auth/user", headers=auth_headers(body["token"]))
        assert profile.json()["login_streak"] == 1
        assert profile.json()["last_login"] is not None

    @pytest.mark.asyncio
    async def test_bad_credentials_share_one_message(self, client, register):
        await register()

        wrong_password = await client.post(
            "/api/auth/user/login",
            json={"username": "jane@example.com", "password": "wrong"},
        )
        unknown_user = await client.post(
            "/api/auth/user/login",
            json={"username": "ghost@example.com", "password": "s3cret-pass"},
        )

        assert wrong_password.status_code == unknown_user.status_code == 400
        assert wrong_password.json() == unknown_user.json() == {"error": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_streak_follows_calendar_days(self, register, session_factory, offline_cache):
        body = await register()
        user_id = body["user"]["id"]
        day = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

        async def login_at(moment):
            async with session_factory() as session:
                service = AuthService(
                    session, referral_service=ReferralService(session, cache=offline_cache)
                )
                await service.authenticate_user("jane@example.com", "s3cret-pass", now=moment)
                user = await UserRepository(session).get(user_id, fresh=True)
                return user.login_streak

        assert await login_at(day) == 1
        assert await login_at(day + timedelta(hours=5)) == 1
        assert await login_at(day + timedelta(days=1)) == 2
        assert await login_at(day + timedelta(days=3)) == 1


@pytest.mark.integration
class TestProfile:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get("/api/auth/user")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authorized, no token"}

    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self, client):
        response = await client.get("/api/auth/user", headers=auth_headers("not-a-jwt"))

        assert response.status_code == 401
        assert response.json() == {"error": "Not authorized, token failed"}

    @pytest.mark.asyncio
    async def test_deleted_user_token(self, client):
        token = security_manager.issue_user_token(999)

        response = await client.get("/api/auth/user", headers=auth_headers(token))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_partial_update_merges_address(self, client, register):
        body = await register()

        response = await client.put(
            "/api/auth/user/profile",
            headers=auth_headers(body["token"]),
            json={"name": "Janet", "address": {"city": "Shelbyville"}},
        )

        assert response.status_code == 200
        profile = response.json()
        assert profile["name"] == "Janet"
        assert profile["address"] == {"street": "1 Main St", "city": "Shelbyville", "zip": "12345"}
        assert profile["phone"] == "555-0100"

    @pytest.mark.asyncio
    async def test_null_clears_optional_fields_only(self, client, register):
        body = await register()

        response = await client.put(
            "/api/auth/user/profile",
            headers=auth_headers(body["token"]),
            json={"occupation": None, "name": None},
        )

        assert response.status_code == 200
        profile = response.json()
        assert profile["occupation"] is None
        assert profile["purchase_priorities"] == "quality"
        assert profile["name"] == "Jane Doe"

    @pytest.mark.asyncio
    async def test_cannot_take_another_users_username(self, client, register):
        jane = await register()
        await register(username="bob@example.com", phone="555-0101")

        response = await client.put(
            "/api/auth/user/profile",
            headers=auth_headers(jane["token"]),
            json={"username": "bob@example.com"},
        )

        assert response.status_code == 400
        assert "already in use" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_progress_report(self, client, register):
        body = await register()
        headers = auth_headers(body["token"])

        for n in range(3):
            created = await client.post(
                "/api/community/posts",
                headers=headers,
                data={"type": "experience", "content": f"Sample #{n}"},
            )
            assert created.status_code == 201

        response = await client.get("/api/auth/user/progress", headers=headers)

        assert response.status_code == 200
        report = response.json()
        assert report["progress"] == 33
        assert report["reward_unlocked"] is False
        assert report["metrics"]["community_actions"] == {
            "current": 3,
            "target": 3,
            "completed": True,
            "remaining": 0,
        }


@pytest.mark.integration
class TestApplicationSurface:
    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"error": "Page not found"}

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
