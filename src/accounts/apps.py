"""App configuration for accounts and authentication components."""

from django.apps import AppConfig


class AccountsConfig(AppConfig):
    """Accounts app holds staff/lecturer accounts and the token service."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "accounts"
