"""Closed set of account roles and the sentinel for anonymous endpoints."""

from django.db import models


class Role(models.IntegerChoices):
    """Account roles. Admin is never persisted; it comes from settings."""

    ADMIN = 0, "Admin"
    STAFF = 1, "Staff"
    LECTURER = 2, "Lecturer"


# Roles that may be assigned to persisted accounts.
ASSIGNABLE_ROLES = (Role.STAFF, Role.LECTURER)

# Marks a view action as reachable without authentication.
ALLOW_ANY = None


__all__ = ["Role", "ASSIGNABLE_ROLES", "ALLOW_ANY"]
