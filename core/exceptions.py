"""
Error taxonomy for the marketplace API and the DRF exception handler that
wraps every failure into the `{success, error, message, details}` envelope.
"""
import logging

from django.core.exceptions import PermissionDenied
from django.db import InterfaceError, OperationalError
from django.http import Http404
from django.utils.translation import gettext_lazy as _
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger("market.api")


class MarketError(exceptions.APIException):
    """Base class; `details` is echoed back to the client untouched."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Request failed.")
    default_code = "error"

    def __init__(self, message=None, details=None, code=None):
        super().__init__(detail=message, code=code)
        self.details = details


class ValidationError(MarketError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Invalid input.")
    default_code = "validation_error"

    def __init__(self, errors=None, message=None):
        # errors: {field: [messages]} covering every violation, not just the first
        super().__init__(message=message, details=errors or {})
        self.errors = errors or {}


class Unauthorized(MarketError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = _("Authentication required.")
    default_code = "unauthorized"


class Forbidden(MarketError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _("You do not have permission to perform this action.")
    default_code = "forbidden"


class NotFound(MarketError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("Not found.")
    default_code = "not_found"


class Conflict(MarketError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("The resource was modified concurrently.")
    default_code = "conflict"


class InvalidState(MarketError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("Operation not allowed in the current status.")
    default_code = "invalid_state"


class UpstreamFailure(MarketError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = _("A backend service is unavailable. Please try again later.")
    default_code = "upstream_failure"


class Timeout(MarketError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_detail = _("A backend service did not respond in time. Please retry.")
    default_code = "timeout"


# DRF's built-in exceptions, mapped onto the codes above
DRF_CODES = {
    exceptions.ValidationError: "validation_error",
    exceptions.ParseError: "validation_error",
    exceptions.NotAuthenticated: "unauthorized",
    exceptions.AuthenticationFailed: "unauthorized",
    exceptions.PermissionDenied: "forbidden",
    exceptions.NotFound: "not_found",
    exceptions.MethodNotAllowed: "method_not_allowed",
    exceptions.UnsupportedMediaType: "validation_error",
    exceptions.Throttled: "throttled",
}


def _code_for(exc):
    for exc_class, code in DRF_CODES.items():
        if isinstance(exc, exc_class):
            return code
    return "error"


def envelope_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into the marketplace envelope.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    if isinstance(exc, (OperationalError, InterfaceError)):
        # Database unreachable
        logger.error(f"Database unavailable: {exc}")
        exc = UpstreamFailure(_("The database is temporarily unavailable."))

    if isinstance(exc, MarketError):
        body = {
            "success": False,
            "error": exc.get_codes(),
            "message": str(exc.detail),
        }
        if exc.details:
            body["details"] = exc.details
        return Response(body, status=exc.status_code)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        code = _code_for(exc)
        if code == "validation_error":
            body = {
                "success": False,
                "error": code,
                "message": str(ValidationError.default_detail),
                "details": response.data,
            }
        else:
            body = {
                "success": False,
                "error": code,
                "message": str(response.data.get("detail", exc)) if isinstance(response.data, dict) else str(exc),
            }
        return Response(body, status=response.status_code, headers=_passthrough_headers(response))

    # Unhandled exceptions -> 500, never leak the raw error
    view = context.get("view")
    logger.exception(f"Unhandled API exception in {view.__class__.__name__ if view else 'unknown view'}", exc_info=exc)

    return Response(
        {
            "success": False,
            "error": "internal_error",
            "message": str(_("Internal server error.")),
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _passthrough_headers(response):
    headers = {}
    for name in ("WWW-Authenticate", "Retry-After", "Allow"):
        if name in response:
            headers[name] = response[name]
    return headers
