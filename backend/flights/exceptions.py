from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from flights.providers.base import ProviderError


def _error_body(kind, message, details=None):
    return {"ok": False, "kind": kind, "message": message, "details": details or {}}


def api_exception_handler(exc, context):
    """Render DRF and provider errors in the same shape the views use."""

    if isinstance(exc, ProviderError):
        return Response(_error_body(exc.kind, str(exc), exc.details), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = _error_body("validation", "Invalid request.", response.data)
    elif isinstance(exc, exceptions.ParseError):
        response.data = _error_body("validation", str(exc.detail))
    else:
        # Method, media type and similar request-level problems keep DRF's status.
        response.data = _error_body("request", str(exc.detail))
    return response
