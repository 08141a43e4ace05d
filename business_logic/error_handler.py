"""
Centralized error handling and user feedback.

This module classifies failures from the AdTrack backend, the AI advisor
and local data processing, provides retry with backoff, and turns errors
into the inline notifications each dashboard panel shows.
"""

import logging
import time
from typing import Dict, Any, Optional, Callable, Tuple
from enum import Enum
from dataclasses import dataclass
from collections import Counter
from datetime import datetime, timedelta

import openai
import requests

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for better classification."""
    API_ERROR = "api_error"
    AI_ERROR = "ai_error"
    DATA_ERROR = "data_error"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    SYSTEM_ERROR = "system_error"


@dataclass
class ErrorInfo:
    """Structured error information."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    technical_details: Optional[str] = None
    suggested_action: Optional[str] = None
    retry_possible: bool = False
    timestamp: datetime = None
    context: str = ""
    rate_limited: bool = False

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


class RetryConfig:
    """Configuration for retry mechanisms."""

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0,
                 exponential_backoff: bool = True, max_delay: float = 30.0):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.exponential_backoff = exponential_backoff
        self.max_delay = max_delay


def _status_code_of(error: Exception) -> Optional[int]:
    """Extract an HTTP status code from a requests or client exception."""
    status_code = getattr(error, 'status_code', None)
    if status_code is not None:
        return status_code
    response = getattr(error, 'response', None)
    if response is not None:
        return getattr(response, 'status_code', None)
    return None


class ErrorHandler:
    """
    Centralized error handling and user feedback system.

    Provides retry mechanisms, user-friendly error messages and
    per-category classification for backend, AI and data failures.
    """

    def __init__(self):
        self.error_history = []
        self.rate_limit_tracker = {}
        self.max_history = 100

    def handle_api_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle AdTrack backend HTTP errors.

        Args:
            error: The HTTP or client exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        status_code = _status_code_of(error)

        if status_code in (401, 403):
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.CRITICAL,
                message=f"AdTrack API rejected credentials ({status_code}) in {context}: {str(error)}",
                user_message="You are not authorized to load this data. Please sign in again.",
                suggested_action="Check the ADTRACK_API_TOKEN setting.",
                retry_possible=False
            )

        if status_code == 404:
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"AdTrack API resource not found in {context}: {str(error)}",
                user_message="The requested data could not be found.",
                retry_possible=False
            )

        if status_code == 429:
            self._track_rate_limit()
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"AdTrack API rate limit exceeded in {context}: {str(error)}",
                user_message="Too many requests. Retrying shortly.",
                suggested_action="Wait a moment and refresh.",
                retry_possible=True,
                rate_limited=True
            )

        if status_code is not None and status_code >= 500:
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"AdTrack API server error ({status_code}) in {context}: {str(error)}",
                user_message="The AdTrack service encountered an internal error. Please try again.",
                suggested_action="Retry the operation. If the problem persists, contact support.",
                retry_possible=True
            )

        if status_code is not None and 400 <= status_code < 500:
            return ErrorInfo(
                category=ErrorCategory.API_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"AdTrack API rejected request ({status_code}) in {context}: {str(error)}",
                user_message="The request was rejected by the server.",
                technical_details=str(error),
                retry_possible=False
            )

        return ErrorInfo(
            category=ErrorCategory.API_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"AdTrack API error in {context}: {str(error)}",
            user_message="Failed to load data from the server.",
            technical_details=str(error),
            suggested_action="Please try again. If the problem persists, contact support.",
            retry_possible=True
        )

    def handle_ai_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle OpenAI errors raised by the marketing advisor.

        Args:
            error: The OpenAI exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        if isinstance(error, openai.AuthenticationError):
            return ErrorInfo(
                category=ErrorCategory.AI_ERROR,
                severity=ErrorSeverity.CRITICAL,
                message=f"OpenAI authentication failed: {str(error)}",
                user_message="The marketing advisor is not configured correctly.",
                suggested_action="Verify the OPENAI_API_KEY setting.",
                retry_possible=False
            )

        if isinstance(error, openai.RateLimitError):
            self._track_rate_limit()
            return ErrorInfo(
                category=ErrorCategory.AI_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"OpenAI rate limit exceeded: {str(error)}",
                user_message="The marketing advisor is busy. Please try again in a moment.",
                retry_possible=True,
                rate_limited=True
            )

        if isinstance(error, (openai.APIConnectionError, openai.APITimeoutError)):
            return ErrorInfo(
                category=ErrorCategory.AI_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"OpenAI connection problem in {context}: {str(error)}",
                user_message="The marketing advisor could not be reached.",
                retry_possible=True
            )

        return ErrorInfo(
            category=ErrorCategory.AI_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"OpenAI error in {context}: {str(error)}",
            user_message="The marketing advisor encountered an error.",
            technical_details=str(error),
            retry_possible=True
        )

    def handle_data_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle data-related errors (missing files, malformed payloads, etc.).

        Args:
            error: The data exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        error_str = str(error).lower()

        if isinstance(error, FileNotFoundError) or "no such file" in error_str:
            return ErrorInfo(
                category=ErrorCategory.DATA_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"File not found in {context}: {str(error)}",
                user_message="The selected file could not be found.",
                suggested_action="Choose the file again and retry the import.",
                retry_possible=False
            )

        if isinstance(error, PermissionError):
            return ErrorInfo(
                category=ErrorCategory.DATA_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"File permission error: {str(error)}",
                user_message="Cannot read the file due to permission restrictions.",
                retry_possible=False
            )

        if "missing column" in error_str or "malformed" in error_str or "invalid" in error_str:
            return ErrorInfo(
                category=ErrorCategory.DATA_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"Malformed data in {context}: {str(error)}",
                user_message="The data is in an unexpected format.",
                technical_details=str(error),
                suggested_action="Check the file columns match the campaign import template.",
                retry_possible=False
            )

        return ErrorInfo(
            category=ErrorCategory.DATA_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Data processing error in {context}: {str(error)}",
            user_message="An error occurred while processing data.",
            technical_details=str(error),
            retry_possible=False
        )

    def handle_network_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle network-related errors.

        Args:
            error: The network exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        if isinstance(error, (requests.Timeout, TimeoutError)) or "timeout" in str(error).lower():
            return ErrorInfo(
                category=ErrorCategory.NETWORK_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Network timeout in {context}: {str(error)}",
                user_message="The request timed out. Please try again.",
                suggested_action="Check your internet connection and try again.",
                retry_possible=True
            )

        return ErrorInfo(
            category=ErrorCategory.NETWORK_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Network connection failed in {context}: {str(error)}",
            user_message="Cannot connect to the AdTrack service. Please check your internet connection.",
            technical_details=str(error),
            retry_possible=True
        )

    def handle_validation_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle validation errors with specific user guidance.

        Args:
            error: The validation exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        return ErrorInfo(
            category=ErrorCategory.VALIDATION_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Validation error in {context}: {str(error)}",
            user_message=str(error),
            suggested_action="Please correct the highlighted fields and try again.",
            retry_possible=False
        )

    def retry_with_backoff(self, func: Callable, config: RetryConfig = None,
                           context: str = "") -> Tuple[bool, Any, Optional[ErrorInfo]]:
        """
        Call ``func`` until it succeeds, a non-retryable error occurs or the
        attempts run out.

        Delays double after each failure (capped at ``max_delay``); after a
        rate limit the longer rate-limit delay is used instead.

        Args:
            func: Zero-argument callable
            config: Retry configuration
            context: Operation name used in logs and error info

        Returns:
            Tuple of (success, result, error_info); error_info describes the
            last failure
        """
        config = config or RetryConfig()
        error_info = None

        for attempt in range(1, config.max_attempts + 1):
            try:
                return True, func(), None
            except Exception as e:
                error_info = self.classify_error(e, context)
                logger.warning(f"{context} failed (attempt {attempt}/{config.max_attempts}): {str(e)}")

            if attempt == config.max_attempts or not error_info.retry_possible:
                break

            time.sleep(self._retry_delay(config, attempt, error_info))

        return False, None, error_info

    def _retry_delay(self, config: RetryConfig, attempt: int, error_info: ErrorInfo) -> float:
        if config.exponential_backoff:
            delay = min(config.base_delay * (2 ** (attempt - 1)), config.max_delay)
        else:
            delay = config.base_delay

        if error_info.rate_limited:
            delay = max(delay, min(self.get_rate_limit_delay(), config.max_delay))

        logger.info(f"Retrying in {delay} seconds")
        return delay

    def classify_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Route an exception to the matching handler.

        Args:
            error: The exception to classify
            context: Panel or operation the error happened in

        Returns:
            ErrorInfo tagged with ``context``
        """
        if isinstance(error, openai.OpenAIError):
            error_info = self.handle_ai_error(error, context)
        elif isinstance(error, (requests.ConnectionError, requests.Timeout, ConnectionError, TimeoutError)):
            error_info = self.handle_network_error(error, context)
        elif isinstance(error, requests.RequestException) or _status_code_of(error) is not None:
            error_info = self.handle_api_error(error, context)
        elif isinstance(error, (FileNotFoundError, PermissionError)):
            error_info = self.handle_data_error(error, context)
        elif isinstance(error, (ValueError, TypeError)):
            if "validation" in str(error).lower() or getattr(error, 'field', None):
                error_info = self.handle_validation_error(error, context)
            else:
                error_info = self.handle_data_error(error, context)
        else:
            error_info = ErrorInfo(
                category=ErrorCategory.SYSTEM_ERROR,
                severity=ErrorSeverity.ERROR,
                message=f"Unexpected {type(error).__name__} in {context}: {str(error)}",
                user_message="An unexpected error occurred. Please try again or contact support.",
                technical_details=str(error),
                retry_possible=False
            )

        error_info.context = context
        return error_info

    def _track_rate_limit(self):
        """Remember rate limiting so later retries wait longer."""
        self.rate_limit_tracker['last_rate_limit'] = datetime.now()
        self.rate_limit_tracker['count'] = self.rate_limit_tracker.get('count', 0) + 1

    def get_rate_limit_delay(self) -> float:
        """Seconds to wait after rate limiting: 5s per recent hit, at most 25s."""
        last = self.rate_limit_tracker.get('last_rate_limit')
        if last is None or datetime.now() - last > timedelta(minutes=10):
            return 1.0
        return 5.0 * min(self.rate_limit_tracker.get('count', 1), 5)

    def create_user_notification(self, error_info: ErrorInfo) -> Dict[str, Any]:
        """
        Build the inline notification a panel shows for a failed load.

        Args:
            error_info: Structured error information

        Returns:
            Dictionary with ``type`` (``info``/``warning``/``error``), ``title``,
            ``message``, ``retry_possible`` and, when available, ``action``
        """
        level = error_info.severity.value
        notification = {
            'type': 'error' if error_info.severity == ErrorSeverity.CRITICAL else level,
            'title': self._get_error_title(error_info),
            'message': error_info.user_message,
            'timestamp': error_info.timestamp.isoformat(),
            'retry_possible': error_info.retry_possible
        }

        if error_info.suggested_action:
            notification['action'] = error_info.suggested_action
        if error_info.context:
            notification['panel'] = error_info.context

        return notification

    def _get_error_title(self, error_info: ErrorInfo) -> str:
        titles = {
            ErrorCategory.API_ERROR: "Failed to load",
            ErrorCategory.AI_ERROR: "Advisor unavailable",
            ErrorCategory.DATA_ERROR: "Data Error",
            ErrorCategory.VALIDATION_ERROR: "Invalid input",
            ErrorCategory.NETWORK_ERROR: "Connection Error",
            ErrorCategory.SYSTEM_ERROR: "Unexpected Error"
        }
        return titles.get(error_info.category, "Error")

    def log_error(self, error_info: ErrorInfo, context: str = ""):
        """
        Record an error in the history and log it at its severity.

        Args:
            error_info: Structured error information
            context: Component reporting the error
        """
        self.error_history.append(error_info)
        del self.error_history[:-self.max_history]

        level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL,
        }[error_info.severity]
        logger.log(level, f"{context or error_info.context}: {error_info.message}")

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        Summarize recent errors by category, severity and context.

        Returns:
            Dictionary with ``total_errors`` and, when there are any, 24 hour
            breakdowns plus rate limit information
        """
        if not self.error_history:
            return {'total_errors': 0}

        cutoff = datetime.now() - timedelta(hours=24)
        recent = [e for e in self.error_history if e.timestamp > cutoff]

        return {
            'total_errors': len(self.error_history),
            'recent_errors_24h': len(recent),
            'category_breakdown': dict(Counter(e.category.value for e in recent)),
            'severity_breakdown': dict(Counter(e.severity.value for e in recent)),
            'context_breakdown': dict(Counter(e.context for e in recent if e.context)),
            'rate_limit_info': dict(self.rate_limit_tracker)
        }


# Global error handler instance
error_handler = ErrorHandler()
