"""Role-based permission class mapping view actions to allowed roles."""

from rest_framework import permissions

from .roles import ALLOW_ANY


class RolePermission(permissions.BasePermission):
    """Check the caller's role against the view's ``allowed_roles`` table.

    ``allowed_roles`` maps a viewset action (``"list"``, ``"create"``, a custom
    ``@action`` name, ...) to either ``ALLOW_ANY`` or a collection of roles.
    A ``"default"`` entry applies to actions that are not listed. Actions with
    no entry at all are denied.

    Unauthenticated callers on a protected action are rejected with
    ``has_permission == False``; DRF turns that into ``NotAuthenticated``
    (401) because no authenticator succeeded, while an authenticated caller
    with the wrong role gets ``PermissionDenied`` (403).
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        found, allowed = self._get_allowed_roles(view)
        if not found:
            return False
        if allowed is ALLOW_ANY:
            return True

        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False

        return getattr(user, "role", None) in allowed

    @staticmethod
    def _get_allowed_roles(view):
        """Return ``(found, roles)`` for the view's current action."""
        rules = getattr(view, "allowed_roles", None) or {}
        action = getattr(view, "action", None)
        if action is None:
            # Method not routed on this viewset; let DRF answer 405.
            return True, ALLOW_ANY
        if action in rules:
            return True, rules[action]
        if "default" in rules:
            return True, rules["default"]
        return False, None


__all__ = ["RolePermission"]
