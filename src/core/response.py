"""Response helpers and base classes for consistent API envelopes."""

from typing import Any

from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet


def envelope(data: Any, message: str = "Success") -> dict[str, Any]:
    """Build the success envelope ``{success, message, data, errors}``."""

    return {"success": True, "message": message, "data": data, "errors": []}


def error_envelope(message: str, errors: list[Any]) -> dict[str, Any]:
    """Build the failure envelope with ``data`` set to null."""

    return {"success": False, "message": message, "data": None, "errors": list(errors)}


def api_response(data: Any, message: str = "Success", status: int = 200) -> Response:
    """Return data wrapped in the standard envelope.

    All successful JSON responses should use this helper to ensure the
    `{ "success": true, "message": ..., "data": ..., "errors": [] }` shape.
    """

    return Response(envelope(data, message), status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and {"success", "data", "errors"} <= payload.keys()


class EnvelopeMixin:
    """Mixin to wrap successful responses in the standard envelope."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        """Ensure non-error responses include the envelope."""
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                response.data = envelope(response.data)
        # DRF's APIView/ViewSet provide finalize_response; mixin alone doesn't.
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, APIView):
    """APIView that ensures successful responses use the standard envelope."""


class BaseViewSet(EnvelopeMixin, ViewSet):
    """ViewSet variant that wraps successful responses in the envelope."""
