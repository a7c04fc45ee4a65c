"""
Tests for authentication, token validation and user management.

Covers login (including username enumeration resistance), token
tampering and expiry, /me, admin-only registration and the user list.
"""

import string
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient

from immicrm.auth import service
from immicrm.auth.models import User, UserRole
from immicrm.auth.service import create_access_token, decode_access_token
from immicrm.common.exceptions import AuthenticationError
from immicrm.config import settings
from tests.conftest import UserFactory, _create_test_user


B64URL = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"


def _mutate(segment: str, position: str) -> str:
    """Replace one character of a base64url segment with a different one.

    The high bit of the 6-bit value is flipped, so the decoded bytes change
    even in a final character whose low bits are padding.
    """
    i = {"first": 0, "middle": len(segment) // 2, "last": len(segment) - 1}[position]
    replacement = B64URL[B64URL.index(segment[i]) ^ 0b100000]
    return segment[:i] + replacement + segment[i + 1 :]


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class TestLogin:
    """POST /api/auth/login"""

    async def test_login_valid_credentials(self, client: AsyncClient):
        user = await _create_test_user("login-ok", "GoodPassword1!", UserRole.staff)
        resp = await client.post("/api/auth/login", json={"username": "login-ok", "password": "GoodPassword1!"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token"]
        assert body["token_type"] == "bearer"
        assert body["user"]["id"] == user.id
        assert body["user"]["role"] == "staff"
        assert body["user"]["last_login"] is not None
        assert "password_hash" not in body["user"]

    async def test_login_token_carries_identity(self, client: AsyncClient):
        user = await _create_test_user("claims", "GoodPassword1!", UserRole.manager)
        resp = await client.post("/api/auth/login", json={"username": "claims", "password": "GoodPassword1!"})
        identity = decode_access_token(resp.json()["token"])
        assert identity.id == user.id
        assert identity.username == "claims"
        assert identity.role == UserRole.manager

    async def test_login_wrong_password(self, client: AsyncClient):
        await _create_test_user("login-bad", "CorrectPassword1!", UserRole.staff)
        resp = await client.post("/api/auth/login", json={"username": "login-bad", "password": "WrongPassword1!"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid username or password"

    async def test_unknown_username_is_indistinguishable(self, client: AsyncClient):
        await _create_test_user("real-user", "CorrectPassword1!", UserRole.staff)
        wrong_password = await client.post(
            "/api/auth/login", json={"username": "real-user", "password": "WrongPassword1!"}
        )
        unknown_user = await client.post(
            "/api/auth/login", json={"username": "ghost-user", "password": "WrongPassword1!"}
        )
        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()

    async def test_unknown_username_needs_no_fresh_hash(self, client: AsyncClient, monkeypatch):
        def _no_hashing(password: str) -> str:
            raise AssertionError("login should reuse the prebuilt hash")

        monkeypatch.setattr(service, "hash_password", _no_hashing)
        resp = await client.post("/api/auth/login", json={"username": "nobody-yet", "password": "WrongPassword1!"})
        assert resp.status_code == 401
        assert service.pwd_context.identify(service._DUMMY_HASH) == "bcrypt"

    async def test_login_missing_fields(self, client: AsyncClient):
        resp = await client.post("/api/auth/login", json={"username": "someone"})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Token validation
# ---------------------------------------------------------------------------


class TestTokenValidation:
    """Bearer token checks on protected routes."""

    async def test_missing_token(self, client: AsyncClient):
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    async def test_non_bearer_scheme(self, client: AsyncClient):
        resp = await client.get("/api/auth/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert resp.status_code == 401

    async def test_garbage_token(self, client: AsyncClient):
        resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid or expired token"

    @pytest.mark.parametrize("position", ["first", "middle", "last"])
    @pytest.mark.parametrize("segment", [0, 1, 2])
    async def test_tampered_token_rejected(
        self, client: AsyncClient, staff_user: User, segment: int, position: str
    ):
        token = create_access_token(staff_user.id, staff_user.username, staff_user.role.value)
        parts = token.split(".")
        parts[segment] = _mutate(parts[segment], position)
        resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {'.'.join(parts)}"})
        assert resp.status_code == 401

    async def test_expired_token_rejected(self, client: AsyncClient, staff_user: User):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": str(staff_user.id),
                "username": staff_user.username,
                "role": "staff",
                "type": "access",
                "iat": past - timedelta(hours=24),
                "exp": past,
            },
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_token_signed_with_other_key_rejected(self, client: AsyncClient, staff_user: User):
        token = jwt.encode(
            {
                "sub": str(staff_user.id),
                "username": staff_user.username,
                "role": "admin",
                "type": "access",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            "some-other-secret",
            algorithm="HS256",
        )
        resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_decode_rejects_wrong_token_type(self):
        token = jwt.encode(
            {
                "sub": "1",
                "username": "x",
                "role": "staff",
                "type": "refresh",
                "exp": datetime.now(timezone.utc) + timedelta(hours=1),
            },
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_decode_rejects_unknown_role(self):
        token = create_access_token(1, "x", "superuser")
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_token_lifetime_is_24_hours(self):
        token = create_access_token(7, "seven", "staff")
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
        assert payload["exp"] - payload["iat"] == 24 * 60 * 60
        assert payload["sub"] == "7"


# ---------------------------------------------------------------------------
# /me
# ---------------------------------------------------------------------------


class TestMe:
    """GET /api/auth/me"""

    async def test_get_me(self, staff_client: AsyncClient, staff_user: User):
        resp = await staff_client.get("/api/auth/me")
        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == staff_user.id
        assert body["username"] == "staff"
        assert body["full_name"] == "Sam Staff"
        assert "password_hash" not in body

    async def test_me_for_deleted_user(self, client: AsyncClient):
        token = create_access_token(9999, "vanished", "staff")
        resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Registration & user list
# ---------------------------------------------------------------------------


class TestRegister:
    """POST /api/auth/register"""

    async def test_admin_can_register_user(self, admin_client: AsyncClient):
        data = UserFactory(role="manager")
        resp = await admin_client.post("/api/auth/register", json=data)
        assert resp.status_code == 201
        body = resp.json()
        assert body["username"] == data["username"]
        assert body["role"] == "manager"
        assert body["last_login"] is None
        assert "password" not in body

    async def test_registered_user_can_log_in(self, admin_client: AsyncClient, client: AsyncClient):
        data = UserFactory()
        await admin_client.post("/api/auth/register", json=data)
        resp = await client.post(
            "/api/auth/login", json={"username": data["username"], "password": data["password"]}
        )
        assert resp.status_code == 200

    async def test_role_defaults_to_staff(self, admin_client: AsyncClient):
        data = UserFactory()
        data.pop("role")
        resp = await admin_client.post("/api/auth/register", json=data)
        assert resp.status_code == 201
        assert resp.json()["role"] == "staff"

    async def test_manager_cannot_register(self, manager_client: AsyncClient):
        resp = await manager_client.post("/api/auth/register", json=UserFactory())
        assert resp.status_code == 403

    async def test_staff_cannot_register(self, staff_client: AsyncClient):
        resp = await staff_client.post("/api/auth/register", json=UserFactory())
        assert resp.status_code == 403

    async def test_register_requires_auth(self, client: AsyncClient):
        resp = await client.post("/api/auth/register", json=UserFactory())
        assert resp.status_code == 401

    async def test_duplicate_username(self, admin_client: AsyncClient):
        first = UserFactory(username="dupe")
        second = UserFactory(username="dupe")
        assert (await admin_client.post("/api/auth/register", json=first)).status_code == 201
        resp = await admin_client.post("/api/auth/register", json=second)
        assert resp.status_code == 409

    async def test_duplicate_email(self, admin_client: AsyncClient):
        first = UserFactory(email="same@immicrm-test.com")
        second = UserFactory(email="same@immicrm-test.com")
        assert (await admin_client.post("/api/auth/register", json=first)).status_code == 201
        resp = await admin_client.post("/api/auth/register", json=second)
        assert resp.status_code == 409

    async def test_email_domain_case_is_kept(self, admin_client: AsyncClient):
        upper = UserFactory(email="ana@IMMICRM-test.com")
        lower = UserFactory(email="ana@immicrm-test.com")
        first = await admin_client.post("/api/auth/register", json=upper)
        second = await admin_client.post("/api/auth/register", json=lower)
        assert first.status_code == second.status_code == 201
        assert first.json()["email"] == "ana@IMMICRM-test.com"
        assert second.json()["email"] == "ana@immicrm-test.com"

    async def test_invalid_email(self, admin_client: AsyncClient):
        resp = await admin_client.post("/api/auth/register", json=UserFactory(email="ana@"))
        assert resp.status_code == 422
        assert resp.json()["error"] == "validation_error"

    async def test_invalid_role(self, admin_client: AsyncClient):
        resp = await admin_client.post("/api/auth/register", json=UserFactory(role="owner"))
        assert resp.status_code == 422

    async def test_short_password(self, admin_client: AsyncClient):
        resp = await admin_client.post("/api/auth/register", json=UserFactory(password="short"))
        assert resp.status_code == 422


class TestListUsers:
    """GET /api/users"""

    async def test_list_users(self, staff_client: AsyncClient, admin_user: User, staff_user: User):
        resp = await staff_client.get("/api/users")
        assert resp.status_code == 200
        body = resp.json()
        assert {u["username"] for u in body} == {"admin", "staff"}
        assert [u["id"] for u in body] == sorted(u["id"] for u in body)
        assert all("password_hash" not in u for u in resp.json())

    async def test_list_users_requires_auth(self, client: AsyncClient):
        resp = await client.get("/api/users")
        assert resp.status_code == 401
