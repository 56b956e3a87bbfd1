"""Shared helpers for tests (account creation, auth clients, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.test import TestCase
from rest_framework.test import APIClient

from access_control.identity import Identity
from access_control.roles import Role
from accounts.managers import AccountManager
from accounts.models import Account
from accounts.services import TokenService
from news.models import Category, NewsArticle


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)


class RedisPatchedTestCase(TestCase):
    """TestCase whose Redis clients are replaced by a shared ``FakeRedis``."""

    @classmethod
    def setUpClass(cls):
        """Patch Redis clients to use in-memory fake for all tests."""
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("accounts.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        """Stop Redis patches after all tests complete."""
        for patcher in cls.patchers:
            patcher.stop()
        super().tearDownClass()

    def setUp(self):
        """Fresh DRF APIClient per test."""
        self.api_client: APIClient = APIClient()


def create_account(
    email: str, password: str = "StrongPass123", role: Role = Role.STAFF, name: str | None = None
) -> Account:
    """Create an account with a bcrypt-hashed password for tests."""

    return Account.objects.create(
        email=email,
        name=name or email.split("@")[0].title(),
        role=role,
        password_hash=AccountManager.hash_password(password),
    )


def admin_identity() -> Identity:
    """The configured admin from ``core.test_settings``."""
    from django.conf import settings

    return Identity.admin(settings.ADMIN_ACCOUNT["EMAIL"], settings.ADMIN_ACCOUNT["NAME"])


def auth_client(user: Account | Identity) -> APIClient:
    """Return an APIClient authenticated with a fresh access token."""

    identity = user if isinstance(user, Identity) else Identity.from_account(user)
    token = TokenService.generate_token(identity)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


def create_category(name: str, parent: Category | None = None, is_active: bool = True) -> Category:
    return Category.objects.create(name=name, parent=parent, is_active=is_active)


def create_article(
    author: Account,
    category: Category,
    title: str = "Title",
    content: str = "Content",
    status: bool = True,
) -> NewsArticle:
    return NewsArticle.objects.create(
        title=title,
        content=content,
        category=category,
        status=status,
        created_by=author,
        updated_by=author,
    )
