"""Tests for authentication flows (login, logout, me, token validation)."""

from __future__ import annotations

import time
from unittest import mock

import jwt
from django.conf import settings
from django.db import DatabaseError
from django.test import override_settings

from access_control.roles import Role
from accounts.services import AccountService, BlocklistUnavailable, TokenService
from core.exceptions import InvalidCredentials
from tests.utils import RedisPatchedTestCase, admin_identity, auth_client, create_account


class AuthFlowTests(RedisPatchedTestCase):
    """End-to-end tests covering auth endpoints and the JWT middleware."""

    @classmethod
    def setUpTestData(cls):
        """Create a staff account used across test cases."""
        cls.password = "StrongPass123"
        cls.staff = create_account("staff@example.com", cls.password, Role.STAFF, name="Staff One")

    def _login(self, email, password):
        return self.api_client.post(
            "/auth/login/", {"email": email, "password": password}, format="json"
        )

    def test_login_success_returns_token_and_account(self):
        """Valid credentials return a token and the account view."""
        response = self._login(self.staff.email, self.password)
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertTrue(body["success"])
        self.assertEqual(body["errors"], [])
        self.assertIn("token", body["data"])
        self.assertEqual(body["data"]["account"]["id"], self.staff.id)
        self.assertEqual(body["data"]["account"]["role"], Role.STAFF)
        self.assertEqual(body["data"]["account"]["role_name"], "Staff")

    def test_login_email_is_case_insensitive(self):
        response = self._login("  STAFF@Example.com ", self.password)
        self.assertEqual(response.status_code, 200)

    def test_login_invalid_credentials_401(self):
        """Bad password returns 401 with null data."""
        response = self._login(self.staff.email, "wrongpass")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertFalse(body["success"])
        self.assertIsNone(body["data"])
        self.assertEqual(body["message"], "Invalid email or password")
        self.assertEqual(body["errors"], ["Invalid email or password"])

    def test_login_unknown_email_401(self):
        response = self._login("nobody@example.com", self.password)
        self.assertEqual(response.status_code, 401)

    def test_login_missing_fields_400(self):
        response = self.api_client.post("/auth/login/", {"email": "x@example.com"}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertTrue(any(error.startswith("password:") for error in body["errors"]))

    def test_admin_login_yields_admin_identity(self):
        """The configured admin logs in without an account row."""
        response = self._login(settings.ADMIN_ACCOUNT["EMAIL"], settings.ADMIN_ACCOUNT["PASSWORD"])
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["data"]["account"]["id"], 0)
        self.assertEqual(body["data"]["account"]["role"], Role.ADMIN)

        payload = TokenService.decode_token(body["data"]["token"])
        self.assertEqual(payload["sub"], "0")
        self.assertEqual(payload["role"], Role.ADMIN)
        self.assertEqual(payload["role_name"], "Admin")

    def test_admin_login_wrong_password(self):
        with self.assertRaises(InvalidCredentials):
            AccountService.login(settings.ADMIN_ACCOUNT["EMAIL"], "not-the-password")

    def test_admin_login_disabled_without_password(self):
        admin = dict(settings.ADMIN_ACCOUNT, PASSWORD="")
        with override_settings(ADMIN_ACCOUNT=admin):
            response = self._login(admin["EMAIL"], "")
        self.assertEqual(response.status_code, 400)

        with override_settings(ADMIN_ACCOUNT=admin), self.assertRaises(InvalidCredentials):
            AccountService.login(admin["EMAIL"], "anything")

    def test_token_claims(self):
        token, identity = AccountService.login(self.staff.email, self.password)
        payload = TokenService.decode_token(token)

        self.assertEqual(payload["sub"], str(self.staff.id))
        self.assertEqual(payload["email"], self.staff.email)
        self.assertEqual(payload["name"], "Staff One")
        self.assertEqual(payload["role"], Role.STAFF)
        self.assertEqual(payload["iss"], settings.JWT_ISSUER)
        self.assertEqual(payload["aud"], settings.JWT_AUDIENCE)
        self.assertTrue(payload["jti"])
        self.assertEqual(identity.id, self.staff.id)

    def test_each_login_gets_a_unique_jti(self):
        first, _ = AccountService.login(self.staff.email, self.password)
        second, _ = AccountService.login(self.staff.email, self.password)
        self.assertNotEqual(
            TokenService.decode_token(first)["jti"], TokenService.decode_token(second)["jti"]
        )

    def test_me_returns_caller(self):
        response = auth_client(self.staff).get("/auth/me/")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["data"]["email"], self.staff.email)

    def test_me_for_admin(self):
        response = auth_client(admin_identity()).get("/auth/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["role_name"], "Admin")

    def test_me_without_token_401(self):
        response = self.api_client.get("/auth/me/")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_logout_blocklists_token(self):
        """Logout blocklists current access token causing subsequent 401."""
        token = self._login(self.staff.email, self.password).json()["data"]["token"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        logout_response = self.api_client.post("/auth/logout/")
        self.assertEqual(logout_response.status_code, 200)
        self.assertEqual(logout_response.json()["message"], "Logout successful")

        # Reusing the same token should now fail because it was blocklisted.
        me_response = self.api_client.get("/auth/me/")
        self.assertEqual(me_response.status_code, 401)

    def test_logout_without_token_is_a_noop(self):
        response = self.api_client.post("/auth/logout/")
        self.assertEqual(response.status_code, 200)

    def test_logout_redis_down_returns_503(self):
        """If Redis is unavailable during logout, the API should fail-closed."""
        self.api_client.credentials(
            HTTP_AUTHORIZATION=f"Bearer {TokenService.generate_token(admin_identity())}"
        )

        with mock.patch.object(
                TokenService,
                "block_token",
                side_effect=BlocklistUnavailable("Redis unavailable while blocklisting"),
        ):
            response = self.api_client.post("/auth/logout/")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_blocklist_check_failure_returns_503(self):
        client = auth_client(self.staff)
        with mock.patch.object(self.fake_redis, "get", side_effect=ConnectionError("down")):
            response = client.get("/auth/me/")

        self.assertEqual(response.status_code, 503)
        self.assertIsNone(response.json()["data"])

    def test_expired_token_returns_401(self):
        now = int(time.time())
        payload = {
            "sub": str(self.staff.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
            "role": Role.STAFF.value,
            "type": "access",
        }
        expired = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=TokenService.ALGORITHM)
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {expired}")

        response = self.api_client.get("/auth/me/")
        self.assertEqual(response.status_code, 401)

    def test_token_with_wrong_audience_returns_401(self):
        now = int(time.time())
        payload = {
            "sub": str(self.staff.id),
            "jti": "jti-aud",
            "exp": now + 60,
            "iat": now,
            "iss": settings.JWT_ISSUER,
            "aud": "someone-else",
            "role": Role.STAFF.value,
            "type": "access",
        }
        token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=TokenService.ALGORITHM)
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        self.assertEqual(self.api_client.get("/auth/me/").status_code, 401)

    def test_garbage_token_returns_401(self):
        self.api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
        response = self.api_client.get("/newsarticles/active/")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertFalse(body["success"])

    def test_token_for_deleted_account_returns_401(self):
        account = create_account("gone@example.com")
        client = auth_client(account)
        account.delete()

        self.assertEqual(client.get("/auth/me/").status_code, 401)

    def test_admin_token_for_old_admin_email_returns_401(self):
        client = auth_client(admin_identity())
        admin = dict(settings.ADMIN_ACCOUNT, EMAIL="new-admin@news.test")
        with override_settings(ADMIN_ACCOUNT=admin):
            response = client.get("/auth/me/")
        self.assertEqual(response.status_code, 401)

    def test_database_unavailable_returns_503_with_envelope(self):
        """Database errors while resolving the caller surface as 503."""
        client = auth_client(self.staff)
        with mock.patch.object(
            AccountService, "resolve_identity", side_effect=DatabaseError("db down")
        ):
            response = client.get("/auth/me/")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])
