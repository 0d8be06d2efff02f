"""Error taxonomy shared by all modules and its HTTP rendering.

Every business error raised by a Service Layer carries a machine-readable
``kind`` and a human-readable message.  ``api_exception_handler`` is wired
as DRF's ``EXCEPTION_HANDLER`` and renders every failure with the same
envelope::

    {
        "type": "validation_error" | "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "..." | null}]
    }
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

import pydantic
import structlog
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL = "INTERNAL"


HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INACTIVE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ---------------------------------------------------------------------------
# Domain error hierarchy
# ---------------------------------------------------------------------------


class DomainError(Exception):
    """Base class for business-rule failures raised by the Service Layer."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, attr: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.attr = attr


class DomainValidationError(DomainError):
    """Malformed input shape.  ``errors`` lists every failing field."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[Dict[str, Any]]] = None,
        attr: Optional[str] = None,
    ) -> None:
        super().__init__(message, attr=attr)
        self.errors = errors or [{"detail": message, "attr": attr}]


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND


class InactiveError(DomainError):
    kind = ErrorKind.INACTIVE


class InsufficientStockError(DomainError):
    kind = ErrorKind.INSUFFICIENT_STOCK


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT


class InternalError(DomainError):
    kind = ErrorKind.INTERNAL


# ---------------------------------------------------------------------------
# DRF exception handler
# ---------------------------------------------------------------------------

_DRF_KIND: Dict[type, ErrorKind] = {
    drf_exceptions.ValidationError: ErrorKind.VALIDATION,
    drf_exceptions.ParseError: ErrorKind.VALIDATION,
    drf_exceptions.NotAuthenticated: ErrorKind.UNAUTHORIZED,
    drf_exceptions.AuthenticationFailed: ErrorKind.UNAUTHORIZED,
    drf_exceptions.PermissionDenied: ErrorKind.FORBIDDEN,
    drf_exceptions.NotFound: ErrorKind.NOT_FOUND,
}


def _envelope(
    kind: ErrorKind, errors: List[Dict[str, Any]], code: Optional[str] = None
) -> Dict[str, Any]:
    if kind is ErrorKind.VALIDATION:
        error_type = "validation_error"
    elif kind is ErrorKind.INTERNAL:
        error_type = "server_error"
    else:
        error_type = "client_error"
    return {
        "type": error_type,
        "errors": [
            {
                "code": code or kind.value,
                "detail": str(error.get("detail", "")),
                "attr": error.get("attr"),
            }
            for error in errors
        ],
    }


def _flatten_drf_detail(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten DRF's nested error detail into ``[{detail, attr}]`` entries."""
    if isinstance(detail, dict):
        flat: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if key != "non_field_errors" else None
            nested = f"{attr}.{name}" if attr and name else (name or attr)
            flat.extend(_flatten_drf_detail(value, nested))
        return flat
    if isinstance(detail, list):
        flat = []
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                flat.extend(_flatten_drf_detail(value, f"{attr}.{index}" if attr else str(index)))
            else:
                flat.append({"detail": value, "attr": attr})
        return flat
    return [{"detail": detail, "attr": attr}]


def pydantic_errors(exc: pydantic.ValidationError) -> List[Dict[str, Any]]:
    """Convert a pydantic ``ValidationError`` into ``[{detail, attr}]`` entries."""
    return [
        {
            "detail": error["msg"],
            "attr": ".".join(str(part) for part in error["loc"]) or None,
        }
        for error in exc.errors()
    ]


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Render domain, validation, DRF and database errors uniformly."""
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    if isinstance(exc, DomainError):
        errors = (
            exc.errors
            if isinstance(exc, DomainValidationError)
            else [{"detail": exc.message, "attr": exc.attr}]
        )
        log_method = logger.error if exc.kind is ErrorKind.INTERNAL else logger.info
        log_method("api.domain_error", kind=exc.kind.value, error=exc.message, view=view_name)
        return Response(_envelope(exc.kind, errors), status=HTTP_STATUS_BY_KIND[exc.kind])

    if isinstance(exc, pydantic.ValidationError):
        return Response(
            _envelope(ErrorKind.VALIDATION, pydantic_errors(exc)),
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()

    if isinstance(exc, drf_exceptions.APIException):
        kind = next((k for cls, k in _DRF_KIND.items() if isinstance(exc, cls)), None)
        if kind is None:
            # e.g. Throttled, MethodNotAllowed: keep DRF's own code
            fallback = ErrorKind.INTERNAL if exc.status_code >= 500 else ErrorKind.VALIDATION
            body = _envelope(
                fallback,
                _flatten_drf_detail(exc.detail),
                code=str(exc.default_code).upper(),
            )
            body["type"] = "server_error" if exc.status_code >= 500 else "client_error"
        else:
            body = _envelope(kind, _flatten_drf_detail(exc.detail))
        response = Response(body, status=exc.status_code)
        auth_header = getattr(exc, "auth_header", None)
        if auth_header:
            response["WWW-Authenticate"] = auth_header
        wait = getattr(exc, "wait", None)
        if wait:
            response["Retry-After"] = str(int(wait))
        return response

    if isinstance(exc, DatabaseError):
        logger.exception("api.database_error", view=view_name)
        return Response(
            _envelope(ErrorKind.INTERNAL, [{"detail": "A persistence error occurred."}]),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return None
