"""Serializers for login and account administration payloads."""

from rest_framework import serializers

from access_control.roles import Role

from .models import Account


class LoginSerializer(serializers.Serializer):
    """Email/password pair; credential checks happen in ``AccountService``."""

    email = serializers.EmailField(max_length=100)
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class IdentitySerializer(serializers.Serializer):
    """Public view of the caller, valid for both accounts and the admin."""

    id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    role = serializers.IntegerField(read_only=True)
    role_name = serializers.SerializerMethodField()

    @staticmethod
    def get_role_name(obj) -> str:
        return Role(obj.role).label


class AccountSerializer(serializers.ModelSerializer):
    """Read-only account payload for admin endpoints."""

    role_name = serializers.SerializerMethodField()

    class Meta:
        """Expose identity fields and timestamps, never the password hash."""
        model = Account
        fields = ["id", "name", "email", "role", "role_name", "created_at", "updated_at"]
        read_only_fields = fields

    @staticmethod
    def get_role_name(obj) -> str:
        return Role(obj.role).label


class AccountCreateSerializer(serializers.Serializer):
    """Validate the shape of a new account; business rules live in the service."""

    name = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=100)
    role = serializers.ChoiceField(choices=Role.choices)
    password = serializers.CharField(write_only=True, min_length=8, trim_whitespace=False)


class AccountUpdateSerializer(AccountCreateSerializer):
    """Same fields as create, but a blank or missing password keeps the old one."""

    password = serializers.CharField(
        write_only=True,
        min_length=8,
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
    )


__all__ = [
    "AccountCreateSerializer",
    "AccountSerializer",
    "AccountUpdateSerializer",
    "IdentitySerializer",
    "LoginSerializer",
]
