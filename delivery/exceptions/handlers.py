"""Global exception handlers for the delivery engine API."""

import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.http import Http404

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from delivery.enums import ErrorKind
from delivery.exceptions.delivery_exceptions import (
    InvalidStatusTransitionError,
    StorageError,
    SubmissionValidationError,
)
from delivery.logging.context import get_request_id

logger = logging.getLogger(__name__)


def custom_exception_handler(
    exc: Exception, context: dict[str, Any]
) -> Response | None:
    """Custom exception handler for Django REST Framework.

    Maps delivery engine errors onto the standard error body
    {status, error, message, request_id, timestamp} and logs the details.

    Args:
        exc: The exception that was raised.
        context: Context dictionary containing request and view information.

    Returns:
        A Response object with the error details.
    """
    view = context.get("view")
    request = view.request if view else None
    request_id = get_request_id()

    response = exception_handler(exc, context)

    if response is None:
        if isinstance(exc, SubmissionValidationError):
            status_code = status.HTTP_400_BAD_REQUEST
            error = ErrorKind.VALIDATION_ERROR.value
            message = str(exc)
        elif isinstance(exc, InvalidStatusTransitionError):
            status_code = status.HTTP_409_CONFLICT
            error = "conflict"
            message = str(exc)
        elif isinstance(exc, StorageError):
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            error = ErrorKind.STORAGE_ERROR.value
            message = "Delivery state could not be persisted. Try again later."
        elif isinstance(exc, (Http404, ObjectDoesNotExist)):
            status_code = status.HTTP_404_NOT_FOUND
            error = "not_found"
            message = "The requested resource was not found."
        elif isinstance(exc, PermissionDenied):
            status_code = status.HTTP_403_FORBIDDEN
            error = "forbidden"
            message = "You do not have permission to perform this action."
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            error = "internal_error"
            message = "An internal server error occurred."

        response = Response(
            _create_error_response(status_code, error, message, request_id),
            status=status_code,
        )

    if request_id and response:
        response["X-Request-ID"] = request_id

    _log_exception(exc, request, response)

    return response


def _create_error_response(
    status_code: int, error: str, message: str, request_id: str | None
) -> dict[str, Any]:
    """Create a standardized error response.

    Args:
        status_code: The HTTP status code.
        error: Machine readable error code.
        message: The error message to return to the client.
        request_id: The request ID for tracing.

    Returns:
        Dictionary with standard error response format.
    """
    return {
        "status": status_code,
        "error": error,
        "message": message,
        "request_id": request_id,
        "timestamp": datetime.now(UTC).isoformat(),
    }


def _log_exception(
    exc: Exception,
    request: Any,
    response: Response | None,
) -> None:
    """Log exception details, with a stack trace in DEBUG mode.

    Args:
        exc: The exception that was raised.
        request: The HTTP request object.
        response: The response object (if available).
    """
    status_code = response.status_code if response else 500
    if isinstance(exc, (Http404, APIException, SubmissionValidationError)):
        log_level = logging.WARNING if status_code < 500 else logging.ERROR
    else:
        log_level = logging.ERROR

    request_path = request.path if request else "unknown"
    request_method = request.method if request else "unknown"

    log_message = (
        f"Exception occurred: {type(exc).__name__}: {exc} | "
        f"Path: {request_method} {request_path} | "
        f"Status: {status_code}"
    )

    if settings.DEBUG:
        stack_trace = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
        log_message += f"\nStack trace:\n{stack_trace}"

    logger.log(log_level, log_message)
