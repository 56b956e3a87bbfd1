"""Middleware to authenticate requests via JWT and Redis blocklist."""

import logging

from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from accounts.services import AccountService, BlocklistUnavailable, TokenService

from .exceptions import UNAUTHORIZED_MESSAGE
from .response import error_envelope

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(MiddlewareMixin):
    """Decode access JWT, check blocklist, and attach the caller's Identity."""

    def process_request(self, request):  # type: ignore[override]
        """Authenticate request using Bearer access token if present."""
        auth_header = request.META.get("HTTP_AUTHORIZATION", "")
        if not auth_header or not auth_header.startswith("Bearer "):
            request.user = AnonymousUser()
            return None

        token = auth_header.split(" ", 1)[1].strip()

        try:
            payload = TokenService.decode_token(token)
            jti = payload.get("jti")
            if not jti:
                return _unauthorized()

            if TokenService.is_token_blocked(jti):
                return _unauthorized()

            identity = AccountService.resolve_identity(payload)
            if identity is None:
                return _unauthorized()

            request.user = identity
            return None

        except AuthenticationFailed:
            return _unauthorized()
        except BlocklistUnavailable as exc:
            logger.error("Token blocklist unavailable: %s", exc.message)
            return _service_unavailable(exc.message)
        except DatabaseError:
            logger.exception("Database error while resolving token identity")
            return _service_unavailable("Service temporarily unavailable.")


def _unauthorized() -> JsonResponse:
    return JsonResponse(
        error_envelope(UNAUTHORIZED_MESSAGE, [UNAUTHORIZED_MESSAGE]),
        status=status.HTTP_401_UNAUTHORIZED,
    )


def _service_unavailable(message: str) -> JsonResponse:
    return JsonResponse(
        error_envelope(message, [message]),
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


__all__ = ["JWTAuthMiddleware"]
