"""Staff and lecturer accounts with bcrypt-hashed passwords.

The Admin role is never stored here: the single admin identity is configured
through settings and authenticated by ``AccountService.login``.
"""

from django.db import models
from django.db.models.functions import Lower

from access_control.roles import Role

from .managers import AccountManager


class Account(models.Model):
    """Account identified by a case-insensitively unique email."""

    name = models.CharField(max_length=100)
    email = models.EmailField(max_length=100)
    role = models.PositiveSmallIntegerField(choices=Role.choices)
    password_hash = models.CharField(max_length=128)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AccountManager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(Lower("email"), name="unique_account_email_ci"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email

    def set_password(self, raw_password: str) -> None:
        """Hash and store ``raw_password``."""
        self.password_hash = AccountManager.hash_password(raw_password)

    def check_password(self, raw_password: str | None) -> bool:
        """Delegate to bcrypt verification helper."""
        if raw_password is None:
            return False
        return AccountManager.verify_password(self, raw_password)


__all__ = ["Account"]
