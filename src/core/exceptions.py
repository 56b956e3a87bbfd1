"""Service-layer error taxonomy and the DRF handler enforcing the API envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.views import set_rollback

from .response import error_envelope

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = (
    "Authentication credentials were not provided or are invalid, or the token was revoked."
)
FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


class ServiceError(APIException):
    """Base class for domain-rule violations raised by the service layer.

    Carries a human-readable ``message`` plus an optional list of detail
    ``errors``; both end up in the response envelope.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."
    default_code = "error"

    def __init__(self, message: str | None = None, errors: list[str] | None = None):
        super().__init__(detail=message or self.default_detail, code=self.default_code)
        self.message = str(self.detail)
        self.errors = list(errors) if errors else [self.message]


class ValidationFailed(ServiceError):
    default_detail = "Validation failed."
    default_code = "validation_failed"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."
    default_code = "not_found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with existing data."
    default_code = "conflict"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = FORBIDDEN_MESSAGE
    default_code = "forbidden"


class DependencyExists(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The resource is still referenced by other records."
    default_code = "dependency_exists"


class HasDependents(DependencyExists):
    default_code = "has_dependents"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid email or password"
    default_code = "invalid_credentials"


def _normalize_errors(payload: Any) -> list[Any]:
    """Flatten DRF's response.data into a list of strings for the envelope."""

    if isinstance(payload, list):
        return [str(item) for item in payload]
    if isinstance(payload, dict):
        if "detail" in payload:
            # Common DRF pattern: {"detail": "..."}
            return [str(payload["detail"])]
        errors = []
        for field, messages in payload.items():
            if not isinstance(messages, (list, tuple)):
                messages = [messages]
            for message in messages:
                if field == "non_field_errors":
                    errors.append(str(message))
                else:
                    errors.append(f"{field}: {message}")
        return errors
    return [str(payload)]


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap every error in the ``{success, message, data, errors}`` envelope.

    - Service errors keep their own status code, message and detail list.
    - Database failures map to 503.
    - Serializer validation errors map to 400 with one entry per message.
    - Anything DRF does not know about is logged and returned as a generic 500.
    """

    if isinstance(exc, ServiceError):
        set_rollback()
        return Response(error_envelope(exc.message, exc.errors), status=exc.status_code)

    # Treat database errors as a temporary service outage and still respect the
    # global envelope format instead of returning Django's HTML 500 page.
    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling request")
        return Response(
            error_envelope("Service temporarily unavailable.", []),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception("Unhandled error in %s", type(view).__name__ if view else "view")
        return Response(
            error_envelope("Internal server error occurred.", []),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # Normalize auth-related status codes to 401, regardless of DRF's default
    # mapping (NotAuthenticated becomes 403 when no auth header is advertised).
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code == status.HTTP_401_UNAUTHORIZED:
        message = UNAUTHORIZED_MESSAGE
        if getattr(settings, "DEBUG_AUTH_ERRORS", False):
            # Surface the specific reason (e.g. "Token has expired").
            errors = _normalize_errors(response.data)
        else:
            errors = [UNAUTHORIZED_MESSAGE]
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        message = FORBIDDEN_MESSAGE
        errors = [FORBIDDEN_MESSAGE]
    elif isinstance(exc, ValidationError):
        message = "Validation failed"
        errors = _normalize_errors(response.data)
    else:
        errors = _normalize_errors(response.data)
        message = errors[0] if errors else "Request failed"

    response.data = error_envelope(message, errors)
    return response


__all__ = [
    "ServiceError",
    "ValidationFailed",
    "NotFound",
    "Conflict",
    "Forbidden",
    "DependencyExists",
    "HasDependents",
    "InvalidCredentials",
    "custom_exception_handler",
]
