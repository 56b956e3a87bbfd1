"""Admin-only account management endpoints and AccountService rules."""

from __future__ import annotations

from access_control.roles import Role
from accounts.models import Account
from accounts.services import AccountService, DuplicateEmail, InvalidRole
from core.exceptions import HasDependents, NotFound
from tests.utils import (
    RedisPatchedTestCase,
    admin_identity,
    auth_client,
    create_account,
    create_article,
    create_category,
)


class AccountServiceTests(RedisPatchedTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.staff = create_account("staff@example.com", name="Staff Member")

    def test_create_hashes_password_and_normalizes_email(self):
        account = AccountService.create("  New Person ", " New@Example.COM ", Role.LECTURER, "Secret123")

        self.assertEqual(account.email, "new@example.com")
        self.assertEqual(account.name, "New Person")
        self.assertNotEqual(account.password_hash, "Secret123")
        self.assertTrue(account.password_hash.startswith("$2"))
        self.assertTrue(account.check_password("Secret123"))

    def test_create_duplicate_email_case_insensitive(self):
        with self.assertRaises(DuplicateEmail):
            AccountService.create("Other", "STAFF@example.com", Role.STAFF, "Secret123")

    def test_admin_email_is_reserved(self):
        with self.assertRaises(DuplicateEmail):
            AccountService.create("X", " ADMIN@news.test ", Role.STAFF, "Secret123")
        with self.assertRaises(DuplicateEmail):
            AccountService.update(self.staff.id, "X", "admin@news.test", Role.STAFF)
        self.assertFalse(Account.objects.filter(email="admin@news.test").exists())

    def test_create_rejects_admin_role(self):
        with self.assertRaises(InvalidRole):
            AccountService.create("Boss", "boss@example.com", Role.ADMIN, "Secret123")

    def test_update_keeps_password_when_blank(self):
        old_hash = self.staff.password_hash
        account = AccountService.update(
            self.staff.id, "Renamed", self.staff.email, Role.LECTURER, password="  "
        )

        self.assertEqual(account.name, "Renamed")
        self.assertEqual(account.role, Role.LECTURER)
        self.assertEqual(account.password_hash, old_hash)

    def test_update_replaces_password(self):
        account = AccountService.update(
            self.staff.id, self.staff.name, self.staff.email, Role.STAFF, password="BrandNew123"
        )
        self.assertTrue(account.check_password("BrandNew123"))

    def test_update_duplicate_email_excludes_self(self):
        other = create_account("other@example.com")

        AccountService.update(self.staff.id, "Same", "STAFF@example.com", Role.STAFF)
        with self.assertRaises(DuplicateEmail):
            AccountService.update(other.id, "Other", "staff@example.com", Role.STAFF)

    def test_update_missing_account(self):
        with self.assertRaises(NotFound):
            AccountService.update(9999, "X", "x@example.com", Role.STAFF)

    def test_delete_blocked_by_authored_articles(self):
        create_article(self.staff, create_category("News"))

        with self.assertRaises(HasDependents) as ctx:
            AccountService.delete(self.staff.id)
        self.assertIn("Staff Member", ctx.exception.message)
        self.assertTrue(Account.objects.filter(pk=self.staff.pk).exists())

    def test_delete_without_articles(self):
        AccountService.delete(self.staff.id)
        self.assertFalse(Account.objects.filter(pk=self.staff.pk).exists())

    def test_search_matches_name_or_email(self):
        create_account("lecturer@school.edu", role=Role.LECTURER, name="Zed Lecturer")

        self.assertEqual([a.email for a in AccountService.search("SCHOOL")], ["lecturer@school.edu"])
        self.assertEqual([a.name for a in AccountService.search("member")], ["Staff Member"])
        self.assertEqual(len(AccountService.search("  ")), 2)


class AccountEndpointTests(RedisPatchedTestCase):
    @classmethod
    def setUpTestData(cls):
        cls.staff = create_account("staff@example.com", name="Staff Member")
        cls.lecturer = create_account("lecturer@example.com", role=Role.LECTURER, name="Lecturer")

    def setUp(self):
        super().setUp()
        self.admin_client = auth_client(admin_identity())

    def test_admin_lists_accounts_without_password_hash(self):
        response = self.admin_client.get("/accounts/")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual([a["name"] for a in body["data"]], ["Lecturer", "Staff Member"])
        self.assertNotIn("password_hash", body["data"][0])

    def test_staff_forbidden(self):
        response = auth_client(self.staff).get("/accounts/")
        body = response.json()

        self.assertEqual(response.status_code, 403)
        self.assertIsNone(body["data"])

    def test_anonymous_unauthorized(self):
        self.assertEqual(self.api_client.get("/accounts/").status_code, 401)

    def test_create_account(self):
        response = self.admin_client.post(
            "/accounts/",
            {"name": "New", "email": "new@example.com", "role": 2, "password": "Secret123"},
            format="json",
        )
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["data"]["role_name"], "Lecturer")
        self.assertEqual(body["message"], "Account created successfully")

        login = self.api_client.post(
            "/auth/login/", {"email": "new@example.com", "password": "Secret123"}, format="json"
        )
        self.assertEqual(login.status_code, 200)

    def test_create_duplicate_email_409(self):
        response = self.admin_client.post(
            "/accounts/",
            {"name": "Dup", "email": "Staff@Example.com", "role": 1, "password": "Secret123"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_create_admin_role_400(self):
        response = self.admin_client.post(
            "/accounts/",
            {"name": "Boss", "email": "boss@example.com", "role": 0, "password": "Secret123"},
            format="json",
        )
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertEqual(body["message"], "Role must be 1 (Staff) or 2 (Lecturer)")

    def test_create_unknown_role_400(self):
        response = self.admin_client.post(
            "/accounts/",
            {"name": "X", "email": "x@example.com", "role": 7, "password": "Secret123"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_create_short_password_400(self):
        response = self.admin_client.post(
            "/accounts/",
            {"name": "X", "email": "x@example.com", "role": 1, "password": "short"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_retrieve_and_missing(self):
        self.assertEqual(self.admin_client.get(f"/accounts/{self.staff.id}/").status_code, 200)
        self.assertEqual(self.admin_client.get("/accounts/9999/").status_code, 404)

    def test_update_without_password(self):
        response = self.admin_client.put(
            f"/accounts/{self.lecturer.id}/",
            {"name": "Lecturer Two", "email": "lecturer@example.com", "role": 2},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["name"], "Lecturer Two")

    def test_delete_with_articles_409(self):
        create_article(self.staff, create_category("World"))

        response = self.admin_client.delete(f"/accounts/{self.staff.id}/")
        body = response.json()

        self.assertEqual(response.status_code, 409)
        self.assertFalse(body["success"])

    def test_delete_account(self):
        response = self.admin_client.delete(f"/accounts/{self.lecturer.id}/")

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["data"])
        self.assertFalse(Account.objects.filter(pk=self.lecturer.id).exists())

    def test_search(self):
        response = self.admin_client.get("/accounts/search/", {"keyword": "lect"})
        self.assertEqual([a["email"] for a in response.json()["data"]], ["lecturer@example.com"])
