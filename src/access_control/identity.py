"""Authenticated caller attached to ``request.user`` by the JWT middleware.

The services only ever look at ``id`` and ``role``; the admin identity has no
backing database row, so a plain value object is used instead of a model
instance.
"""

from dataclasses import dataclass

from .roles import Role

ADMIN_ACCOUNT_ID = 0


@dataclass(frozen=True)
class Identity:
    """Who is calling: account id, contact fields and role."""

    id: int
    email: str
    name: str
    role: Role

    # DRF and Django check these flags on ``request.user``.
    is_authenticated = True
    is_anonymous = False

    @property
    def role_name(self) -> str:
        return Role(self.role).label

    @classmethod
    def from_account(cls, account) -> "Identity":
        """Build an identity from a persisted ``accounts.Account``."""
        return cls(
            id=account.pk,
            email=account.email,
            name=account.name,
            role=Role(account.role),
        )

    @classmethod
    def admin(cls, email: str, name: str) -> "Identity":
        """Build the out-of-band admin identity."""
        return cls(id=ADMIN_ACCOUNT_ID, email=email, name=name, role=Role.ADMIN)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email


__all__ = ["Identity", "ADMIN_ACCOUNT_ID"]
