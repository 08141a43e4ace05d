"""
Tests for error classification, retry and notifications.
"""

import pytest
from unittest.mock import Mock, patch

import requests

from business_logic.error_handler import (
    ErrorCategory, ErrorHandler, ErrorInfo, ErrorSeverity, RetryConfig
)
from business_logic.form_validator import ValidationError
from data.api_client import (
    APITimeoutError, AuthenticationError, InvalidResponseError, NotFoundError, RateLimitError, ServerError
)


class TestClassification:
    """Test mapping of exceptions to error categories."""

    def setup_method(self):
        self.handler = ErrorHandler()

    def test_client_timeout_is_network_error(self):
        info = self.handler.classify_error(APITimeoutError("timed out", endpoint="/api/ad-methods"), "load")

        assert info.category == ErrorCategory.NETWORK_ERROR
        assert info.retry_possible

    def test_requests_connection_error(self):
        info = self.handler.classify_error(requests.ConnectionError("refused"), "load")
        assert info.category == ErrorCategory.NETWORK_ERROR

    @pytest.mark.parametrize("error,severity,retry", [
        (AuthenticationError("denied", status_code=401), ErrorSeverity.CRITICAL, False),
        (NotFoundError("missing", status_code=404), ErrorSeverity.ERROR, False),
        (RateLimitError("slow down", status_code=429), ErrorSeverity.WARNING, True),
        (ServerError("boom", status_code=503), ErrorSeverity.ERROR, True),
    ])
    def test_status_codes(self, error, severity, retry):
        info = self.handler.classify_error(error, "dashboard")

        assert info.category == ErrorCategory.API_ERROR
        assert info.severity == severity
        assert info.retry_possible == retry

    def test_rate_limit_tracked(self):
        self.handler.classify_error(RateLimitError("slow down", status_code=429))
        assert self.handler.rate_limit_tracker['count'] == 1
        assert self.handler.get_rate_limit_delay() == 5.0

    def test_invalid_response_is_not_retried(self):
        info = self.handler.classify_error(InvalidResponseError("not json"), "load")

        assert info.category == ErrorCategory.SYSTEM_ERROR
        assert not info.retry_possible

    def test_validation_error(self):
        info = self.handler.classify_error(ValidationError("Budget must be at least $1", field='total_budget'))

        assert info.category == ErrorCategory.VALIDATION_ERROR
        assert info.user_message == "Budget must be at least $1"

    def test_data_errors(self):
        assert self.handler.classify_error(FileNotFoundError("x.csv")).category == ErrorCategory.DATA_ERROR
        info = self.handler.classify_error(ValueError("Campaign file is missing required columns: name"))
        assert info.category == ErrorCategory.DATA_ERROR


class TestRetry:
    """Test retry with backoff."""

    def setup_method(self):
        self.handler = ErrorHandler()
        self.config = RetryConfig(max_attempts=3, base_delay=1.0, max_delay=10.0)

    @patch('business_logic.error_handler.time.sleep')
    def test_succeeds_after_transient_failures(self, mock_sleep):
        func = Mock(side_effect=[ServerError("boom", status_code=502), APITimeoutError("slow"), "ok"])

        success, result, error_info = self.handler.retry_with_backoff(func, self.config, "GET")

        assert (success, result, error_info) == (True, "ok", None)
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch('business_logic.error_handler.time.sleep')
    def test_gives_up_after_max_attempts(self, mock_sleep):
        func = Mock(side_effect=ServerError("boom", status_code=500))

        success, result, error_info = self.handler.retry_with_backoff(func, self.config, "GET")

        assert not success
        assert result is None
        assert error_info.category == ErrorCategory.API_ERROR
        assert func.call_count == 3
        assert mock_sleep.call_count == 2

    @patch('business_logic.error_handler.time.sleep')
    def test_does_not_retry_permanent_errors(self, mock_sleep):
        func = Mock(side_effect=NotFoundError("missing", status_code=404))

        success, _, _ = self.handler.retry_with_backoff(func, self.config, "GET")

        assert not success
        assert func.call_count == 1
        mock_sleep.assert_not_called()


class TestNotifications:
    """Test notifications and statistics."""

    def setup_method(self):
        self.handler = ErrorHandler()

    def test_user_notification(self):
        info = ErrorInfo(
            category=ErrorCategory.API_ERROR,
            severity=ErrorSeverity.ERROR,
            message="GET /api/ad-methods failed",
            user_message="Failed to load data from the server.",
            suggested_action="Please try again.",
            retry_possible=True
        )

        notification = self.handler.create_user_notification(info)

        assert notification['type'] == 'error'
        assert notification['title'] == "Failed to load"
        assert notification['action'] == "Please try again."
        assert 'technical_details' not in notification

    def test_error_statistics(self):
        assert self.handler.get_error_statistics() == {'total_errors': 0}

        self.handler.log_error(self.handler.classify_error(ServerError("boom", status_code=500)), "dashboard")
        self.handler.log_error(self.handler.classify_error(APITimeoutError("slow")), "wizard")

        stats = self.handler.get_error_statistics()
        assert stats['total_errors'] == 2
        assert stats['category_breakdown'] == {'api_error': 1, 'network_error': 1}
