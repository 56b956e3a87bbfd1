"""Token service (JWT + Redis blocklist) and account management rules."""

import hmac
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from access_control.identity import ADMIN_ACCOUNT_ID, Identity
from access_control.roles import ASSIGNABLE_ROLES, Role
from core.exceptions import (
    Conflict,
    HasDependents,
    InvalidCredentials,
    NotFound,
    ServiceError,
    ValidationFailed,
)
from core.redis_client import get_redis_client

from .managers import AccountManager
from .models import Account

logger = logging.getLogger(__name__)


class BlocklistUnavailable(ServiceError):
    """Raised when Redis blocklist cannot be checked (fail-closed)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Authentication service unavailable (blocklist)."
    default_code = "blocklist_unavailable"


class DuplicateEmail(Conflict):
    default_detail = "Email already exists"
    default_code = "duplicate_email"


class InvalidRole(ValidationFailed):
    default_detail = "Role must be 1 (Staff) or 2 (Lecturer)"
    default_code = "invalid_role"


class TokenService:
    """Handle JWT issuance, decoding, and blocklist operations."""

    ALGORITHM = "HS256"
    TOKEN_TYPE = "access"
    BLOCKLIST_PREFIX = "blocklist:token:"

    @classmethod
    def generate_token(cls, identity: Identity) -> str:
        """Issue a signed access token embedding the caller's identity."""

        now = datetime.now(timezone.utc)
        ttl = timedelta(minutes=settings.JWT_ACCESS_TTL_MINUTES)
        payload = {
            "sub": str(identity.id),
            "jti": str(uuid.uuid4()),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
            "email": identity.email,
            "name": identity.name,
            "role": int(identity.role),
            "role_name": identity.role_name,
            "type": cls.TOKEN_TYPE,
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def decode_token(cls, token: str) -> dict[str, Any]:
        """Decode and validate a JWT (signature, expiry, issuer, audience, type)."""

        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[cls.ALGORITHM],
                audience=settings.JWT_AUDIENCE,
                issuer=settings.JWT_ISSUER,
            )
        except jwt.ExpiredSignatureError as exc:  # pragma: no cover - simple mapping
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if payload.get("type") != cls.TOKEN_TYPE:
            raise AuthenticationFailed("Invalid token type")

        return payload

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        """Add token jti to blocklist until its expiration timestamp."""

        client = get_redis_client()
        ttl_seconds = max(1, exp - int(time.time()))
        try:
            client.setex(f"{cls.BLOCKLIST_PREFIX}{jti}", ttl_seconds, "1")
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        """Check if a token jti is present in the blocklist."""

        client = get_redis_client()
        try:
            return client.get(f"{cls.BLOCKLIST_PREFIX}{jti}") is not None
        except Exception as exc:  # pragma: no cover - network failure
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


def _admin_settings() -> dict[str, str]:
    admin = getattr(settings, "ADMIN_ACCOUNT", {}) or {}
    return {
        "EMAIL": admin.get("EMAIL") or "",
        "PASSWORD": admin.get("PASSWORD") or "",
        "NAME": admin.get("NAME") or "Administrator",
    }


class AccountService:
    """Account CRUD, uniqueness and role rules, and credential checks."""

    @staticmethod
    def list_all() -> list[Account]:
        return list(Account.objects.order_by("name", "id"))

    @staticmethod
    def get_by_id(account_id: int) -> Account:
        account = Account.objects.filter(pk=account_id).first()
        if account is None:
            raise NotFound(f"Account with ID {account_id} not found")
        return account

    @staticmethod
    def search(term: str | None) -> list[Account]:
        """Case-insensitive substring match on name or email."""
        queryset = Account.objects.order_by("name", "id")
        term = (term or "").strip()
        if term:
            queryset = queryset.filter(Q(name__icontains=term) | Q(email__icontains=term))
        return list(queryset)

    @classmethod
    def create(cls, name: str, email: str, role: int, password: str) -> Account:
        email = AccountManager.normalize_email(email)
        cls._ensure_email_available(email)
        role = cls._check_role(role)

        try:
            with transaction.atomic():
                account = Account.objects.create_account(
                    email, password, name=name.strip(), role=role
                )
        except IntegrityError as exc:
            raise DuplicateEmail(f"Email '{email}' already exists") from exc

        logger.info("Created account %s (%s) with role %s", account.pk, email, role.label)
        return account

    @classmethod
    def update(
        cls,
        account_id: int,
        name: str,
        email: str,
        role: int,
        password: str | None = None,
    ) -> Account:
        """Overwrite an account; the password changes only when non-blank."""
        account = cls.get_by_id(account_id)
        email = AccountManager.normalize_email(email)
        cls._ensure_email_available(email, exclude_id=account.pk)
        role = cls._check_role(role)

        account.name = name.strip()
        account.email = email
        account.role = role
        if password and password.strip():
            account.set_password(password)

        try:
            with transaction.atomic():
                account.save()
        except IntegrityError as exc:
            raise DuplicateEmail(f"Email '{email}' already exists") from exc

        logger.info("Updated account %s", account.pk)
        return account

    @classmethod
    def delete(cls, account_id: int) -> None:
        account = cls.get_by_id(account_id)
        if account.articles.exists():
            raise HasDependents(
                f"Cannot delete account '{account.name}' because it has created news articles.",
                ["Please delete or reassign the news articles first."],
            )
        account.delete()
        logger.info("Deleted account %s", account_id)

    @classmethod
    def login(cls, email: str, password: str) -> tuple[str, Identity]:
        """Verify credentials and issue a token.

        The configured admin email bypasses the account table entirely; its
        identity always has id 0 and role Admin.
        """
        normalized = AccountManager.normalize_email(email)
        admin = _admin_settings()

        if admin["EMAIL"] and normalized == AccountManager.normalize_email(admin["EMAIL"]):
            if not admin["PASSWORD"] or not hmac.compare_digest(
                (password or "").encode(), admin["PASSWORD"].encode()
            ):
                logger.warning("Failed admin login attempt")
                raise InvalidCredentials()
            identity = Identity.admin(admin["EMAIL"], admin["NAME"])
        else:
            account = Account.objects.get_by_email(normalized)
            if account is None or not account.check_password(password):
                logger.warning("Failed login attempt for %s", normalized)
                raise InvalidCredentials()
            identity = Identity.from_account(account)

        return TokenService.generate_token(identity), identity

    @staticmethod
    def resolve_identity(payload: dict[str, Any]) -> Identity | None:
        """Map a decoded token payload back to a live identity, or None."""
        subject = payload.get("sub")
        if subject is None:
            return None

        if payload.get("role") == Role.ADMIN:
            admin = _admin_settings()
            if subject != str(ADMIN_ACCOUNT_ID) or not admin["EMAIL"]:
                return None
            # A token minted for a previous admin email is no longer honored.
            if AccountManager.normalize_email(payload.get("email")) != AccountManager.normalize_email(
                admin["EMAIL"]
            ):
                return None
            return Identity.admin(admin["EMAIL"], admin["NAME"])

        try:
            account_id = int(subject)
        except (TypeError, ValueError):
            return None
        account = Account.objects.filter(pk=account_id).first()
        if account is None:
            return None
        return Identity.from_account(account)

    @staticmethod
    def _ensure_email_available(email: str, exclude_id: int | None = None) -> None:
        admin_email = _admin_settings()["EMAIL"]
        if admin_email and email == AccountManager.normalize_email(admin_email):
            raise DuplicateEmail(f"Email '{email}' is reserved for the administrator")
        queryset = Account.objects.filter(email__iexact=email)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        if queryset.exists():
            raise DuplicateEmail(f"Email '{email}' already exists")

    @staticmethod
    def _check_role(role: Any) -> Role:
        try:
            role = Role(int(role))
        except (TypeError, ValueError) as exc:
            raise InvalidRole() from exc
        if role not in ASSIGNABLE_ROLES:
            raise InvalidRole()
        return role


__all__ = [
    "AccountService",
    "BlocklistUnavailable",
    "DuplicateEmail",
    "InvalidRole",
    "TokenService",
]
