"""Authentication endpoints and admin-only account management."""

from typing import Any

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotAuthenticated

from access_control.permissions import RolePermission
from access_control.roles import Role
from core.response import BaseAPIView, BaseViewSet, api_response
from .serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
    IdentitySerializer,
    LoginSerializer,
)
from .services import AccountService, TokenService


class LoginView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Authenticate and issue an access token plus the caller's account view."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        token, identity = AccountService.login(
            serializer.validated_data["email"], serializer.validated_data["password"]
        )
        return api_response(
            {"token": token, "account": IdentitySerializer(identity).data},
            message="Login successful",
        )


class LogoutView(BaseAPIView):
    """Invalidate the current access token by blocklisting its jti."""

    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Blocklist the bearer token when one is presented."""
        token = _get_bearer_token(request)
        if token:
            # The middleware has already rejected malformed or blocked tokens.
            payload = TokenService.decode_token(token)
            TokenService.block_token(payload["jti"], payload["exp"])
        return api_response(None, message="Logout successful")


class MeView(BaseAPIView):
    permission_classes: list[Any] = []

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the current caller's account view."""
        if not request.user.is_authenticated:
            raise NotAuthenticated()
        return api_response(IdentitySerializer(request.user).data)


class AccountViewSet(BaseViewSet):
    """Account CRUD, restricted to the Admin role."""

    permission_classes = [RolePermission]
    allowed_roles = {"default": (Role.ADMIN,)}
    lookup_value_regex = r"\d+"

    # noinspection PyMethodMayBeStatic
    def list(self, request):
        return api_response(AccountSerializer(AccountService.list_all(), many=True).data)

    # noinspection PyMethodMayBeStatic
    def retrieve(self, request, pk=None):
        account = AccountService.get_by_id(int(pk))
        return api_response(AccountSerializer(account).data)

    @action(detail=False, methods=["get"])
    def search(self, request):
        """Substring search on name or email (``?keyword=``)."""
        accounts = AccountService.search(request.query_params.get("keyword"))
        return api_response(AccountSerializer(accounts, many=True).data)

    # noinspection PyMethodMayBeStatic
    def create(self, request):
        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = AccountService.create(**serializer.validated_data)
        return api_response(
            AccountSerializer(account).data,
            message="Account created successfully",
            status=status.HTTP_201_CREATED,
        )

    # noinspection PyMethodMayBeStatic
    def update(self, request, pk=None):
        serializer = AccountUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account = AccountService.update(int(pk), **serializer.validated_data)
        return api_response(AccountSerializer(account).data, message="Account updated successfully")

    # noinspection PyMethodMayBeStatic
    def destroy(self, request, pk=None):
        AccountService.delete(int(pk))
        return api_response(None, message="Account deleted successfully")


def _get_bearer_token(request) -> str | None:
    """Extract the Bearer token from Authorization header if present."""
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


__all__ = ["AccountViewSet", "LoginView", "LogoutView", "MeView"]
