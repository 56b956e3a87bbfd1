"""System checks for role-based access configuration."""

from django.core.checks import Error, register

from access_control.permissions import RolePermission


@register()
def role_views_declare_allowed_roles(app_configs, **kwargs):
    """Ensure role-protected viewsets declare an ``allowed_roles`` table.

    Only the viewsets of this project are inspected. New role-protected views
    should be added to the list below.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from accounts.views import AccountViewSet
    from news.views import CategoryViewSet, NewsArticleViewSet, TagViewSet

    role_views = [AccountViewSet, CategoryViewSet, NewsArticleViewSet, TagViewSet]

    for view_cls in role_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if RolePermission in permission_classes:
            allowed_roles = getattr(view_cls, "allowed_roles", None)
            if not allowed_roles:
                errors.append(
                    Error(
                        f"{view_cls.__name__} uses RolePermission but does not "
                        f"define allowed_roles.",
                        obj=view_cls,
                        id="access_control.E001",
                    )
                )

    return errors
