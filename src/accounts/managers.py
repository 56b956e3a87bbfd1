"""Account manager handling bcrypt hashing and verification."""

import bcrypt
from django.db import models


class AccountManager(models.Manager):
    """Manager to create accounts with bcrypt password hashes."""

    use_in_migrations = True

    @staticmethod
    def normalize_email(email: str) -> str:
        """Emails are compared case-insensitively and stored lower-cased."""
        return (email or "").strip().lower()

    def create_account(self, email: str, password: str, **extra_fields):
        """Create an account with a bcrypt-hashed password."""
        if not email:
            raise ValueError("The Email must be set")
        if not password:
            raise ValueError("Password must be provided")
        account = self.model(email=self.normalize_email(email), **extra_fields)
        account.password_hash = self.hash_password(password)
        account.save(using=self._db)
        return account

    def get_by_email(self, email: str):
        """Return the account matching ``email`` case-insensitively, or None."""
        return self.filter(email__iexact=self.normalize_email(email)).first()

    @staticmethod
    def hash_password(raw_password: str) -> str:
        """Hash a raw password using bcrypt and return the utf-8 string."""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(raw_password.encode(), salt)
        return hashed.decode()

    @staticmethod
    def verify_password(account, raw_password: str) -> bool:
        """Verify raw password against stored bcrypt hash."""

        if not account.password_hash or raw_password is None:
            return False
        return bcrypt.checkpw(raw_password.encode(), account.password_hash.encode("utf-8"))


__all__ = ["AccountManager"]
