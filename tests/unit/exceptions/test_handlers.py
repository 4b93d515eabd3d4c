"""Unit tests for the API exception handler."""

import unittest
from unittest.mock import Mock, patch

from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.views import APIView

from delivery.exceptions import (
    InvalidStatusTransitionError,
    StorageError,
    SubmissionValidationError,
)
from delivery.exceptions.handlers import custom_exception_handler
from delivery.models import DeliveryAttempt


@patch("delivery.exceptions.handlers.get_request_id", return_value="req-123")
class TestCustomExceptionHandler(unittest.TestCase):
    """Test cases for custom_exception_handler."""

    def setUp(self):
        """Set up test fixtures."""
        self.mock_request = Mock()
        self.mock_request.path = "/api/v1/delivery/notifications"
        self.mock_request.method = "POST"

        self.mock_view = Mock(spec=APIView)
        self.mock_view.request = self.mock_request

        self.context = {"view": self.mock_view, "request": self.mock_request}

    def test_drf_exceptions_keep_their_status(self, _mock_request_id):
        """Test DRF's own handling is preserved."""
        response = custom_exception_handler(ValidationError("bad"), self.context)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = custom_exception_handler(NotAuthenticated(), self.context)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response["X-Request-ID"], "req-123")

    def test_submission_validation_error(self, _mock_request_id):
        """Test validation failures map to 400 validation_error."""
        exc = SubmissionValidationError("recipient_user_id is required", "n1")

        response = custom_exception_handler(exc, self.context)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")
        self.assertEqual(response.data["message"], "recipient_user_id is required")

    def test_invalid_transition_is_conflict(self, _mock_request_id):
        """Test a backwards status move maps to 409."""
        exc = InvalidStatusTransitionError(7, "pending", "delivered")

        response = custom_exception_handler(exc, self.context)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "conflict")

    def test_storage_error_is_service_unavailable(self, _mock_request_id):
        """Test store failures map to 503 without leaking database details."""
        exc = StorageError("create_attempt", "could not connect to server")

        response = custom_exception_handler(exc, self.context)

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["error"], "storage_error")
        self.assertNotIn("connect", response.data["message"])

    def test_missing_object_is_not_found(self, _mock_request_id):
        """Test ORM DoesNotExist maps to 404."""
        exc = DeliveryAttempt.DoesNotExist()

        response = custom_exception_handler(exc, self.context)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")

    def test_unexpected_exception(self, _mock_request_id):
        """Test anything else returns the standard 500 body."""
        response = custom_exception_handler(RuntimeError("boom"), self.context)

        self.assertEqual(
            response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        self.assertEqual(
            set(response.data),
            {"status", "error", "message", "request_id", "timestamp"},
        )
        self.assertEqual(response.data["status"], 500)
        self.assertEqual(response.data["request_id"], "req-123")
        self.assertNotIn("boom", response.data["message"])

    @patch("delivery.exceptions.handlers.logger")
    def test_log_level_follows_status(self, mock_logger, _mock_request_id):
        """Test client errors log as warnings and server errors as errors."""
        custom_exception_handler(SubmissionValidationError("bad"), self.context)
        custom_exception_handler(RuntimeError("boom"), self.context)

        levels = [c.args[0] for c in mock_logger.log.call_args_list]
        self.assertEqual(levels, [30, 40])


if __name__ == "__main__":
    unittest.main()
