"""Error handling framework for retention runs and Pages API calls."""

from typing import Optional, Dict, Any, List
from enum import Enum
from dataclasses import dataclass

import requests

from pages_retention.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur during a retention run."""
    CONFIGURATION = "configuration"
    FETCH = "fetch"
    DELETION = "deletion"
    SAFETY = "safety"
    API = "api"
    CREDENTIAL = "credential"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Run cannot continue
    ERROR = "error"  # Item failed but run can continue
    WARNING = "warning"  # Non-fatal issue
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    deployment_id: Optional[str] = None
    operation: Optional[str] = None
    project_name: Optional[str] = None
    environment: Optional[str] = None
    status_code: Optional[int] = None
    api_errors: Optional[List[Dict[str, Any]]] = None
    additional_info: Optional[Dict[str, Any]] = None


class RetentionError(Exception):
    """Base exception for retention errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize retention error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = []

        lines.append(f"{self.severity.value.upper()}: {self.message}")

        if self.context.deployment_id:
            lines.append(f"   Deployment: {self.context.deployment_id}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")
        if self.context.status_code:
            lines.append(f"   HTTP status: {self.context.status_code}")

        if self.cause:
            lines.append(f"   Cause: {str(self.cause)}")

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'deployment_id': self.context.deployment_id,
                'operation': self.context.operation,
                'project_name': self.context.project_name,
                'environment': self.context.environment,
                'status_code': self.context.status_code,
                'api_errors': self.context.api_errors,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class ConfigurationError(RetentionError):
    """Missing or invalid configuration, raised before any network call."""

    def __init__(self, message: str, problems: Optional[List[str]] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )
        self.problems = problems or []

    def __str__(self) -> str:
        if not self.problems:
            return self.message

        lines = [self.message]
        for problem in self.problems:
            lines.append(f"  - {problem}")
        return "\n".join(lines)


class FetchError(RetentionError):
    """Listing deployments failed on some page."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.FETCH,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class NoProtectedDeploymentError(RetentionError):
    """Snapshot has no successful deployment to protect."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.SAFETY,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class DeletionError(RetentionError):
    """Deleting a single deployment failed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.DELETION,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class PagesAPIError(RetentionError):
    """Cloudflare Pages API call failed."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.API, **kwargs):
        kwargs.setdefault('severity', ErrorSeverity.ERROR)
        super().__init__(message, category=category, **kwargs)


class CredentialError(PagesAPIError):
    """API token rejected or lacking permissions."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CREDENTIAL, **kwargs)


class DeploymentNotFoundError(PagesAPIError):
    """Deployment (or project) does not exist."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.NOT_FOUND, **kwargs)


class RateLimitError(PagesAPIError):
    """API rate limit exceeded."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.RATE_LIMIT, **kwargs)


class NetworkError(PagesAPIError):
    """Transport failure or server-side error."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.NETWORK, **kwargs)


class ErrorHandler:
    """Translates HTTP responses and transport exceptions into API errors."""

    # Mapping of HTTP status codes to error classes and suggestions
    STATUS_ERROR_MAPPING = {
        400: {
            'error_class': PagesAPIError,
            'message': 'Request rejected by Cloudflare',
            'suggestions': [
                'Check that the project name and environment are valid',
                'Review the Cloudflare error codes in the log for details'
            ]
        },
        401: {
            'error_class': CredentialError,
            'message': 'API token is invalid or expired',
            'suggestions': [
                'Check that CF_API_TOKEN is set to a valid token',
                'Create a new token if the current one was revoked'
            ]
        },
        403: {
            'error_class': CredentialError,
            'message': 'API token lacks the required permissions',
            'suggestions': [
                'Grant the token the "Cloudflare Pages: Edit" permission',
                'Verify CF_ACCOUNT_ID matches the account the token belongs to'
            ]
        },
        404: {
            'error_class': DeploymentNotFoundError,
            'message': 'Resource not found',
            'suggestions': [
                'Verify CF_PROJECT_NAME and CF_ACCOUNT_ID',
                'Check if the deployment was already deleted'
            ]
        },
        429: {
            'error_class': RateLimitError,
            'message': 'API rate limit exceeded',
            'suggestions': [
                'Run the cleanup less frequently',
                'Wait a few minutes before the next run'
            ]
        },
    }

    def __init__(self):
        """Initialize error handler."""
        self.logger = get_logger(__name__)

    def handle_response(
        self,
        response: requests.Response,
        context: Optional[ErrorContext] = None
    ) -> PagesAPIError:
        """Convert an unsuccessful HTTP response to a PagesAPIError.

        Args:
            response: The failed response
            context: Additional context about where the error occurred

        Returns:
            PagesAPIError subclass matching the status code
        """
        context = context or ErrorContext()
        context.status_code = response.status_code
        context.api_errors = self._extract_api_errors(response)

        detail = "; ".join(
            f"{e.get('code')}: {e.get('message')}" for e in context.api_errors
        ) or response.reason or "no details"

        error_info = self.STATUS_ERROR_MAPPING.get(response.status_code)
        if error_info:
            return error_info['error_class'](
                f"{error_info['message']} ({detail})",
                context=context,
                suggestions=error_info['suggestions']
            )

        if response.status_code >= 500:
            return NetworkError(
                f"Cloudflare API unavailable (HTTP {response.status_code}: {detail})",
                context=context,
                suggestions=[
                    'Check https://www.cloudflarestatus.com for incidents',
                    'Retry on the next scheduled run'
                ]
            )

        return PagesAPIError(
            f"Cloudflare API error (HTTP {response.status_code}: {detail})",
            context=context
        )

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> RetentionError:
        """Handle an exception and convert to RetentionError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            RetentionError with categorization and suggestions
        """
        context = context or ErrorContext()

        if isinstance(error, RetentionError):
            return error

        if isinstance(error, (requests.ConnectionError, requests.Timeout)):
            return NetworkError(
                f'Network error: {str(error)}',
                context=context,
                cause=error,
                suggestions=[
                    'Check your internet connection',
                    'Verify firewall or proxy rules allow access to api.cloudflare.com'
                ]
            )

        if isinstance(error, requests.RequestException):
            return PagesAPIError(
                f'Request failed: {str(error)}',
                context=context,
                cause=error
            )

        return RetentionError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.ERROR,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _extract_api_errors(self, response: requests.Response) -> List[Dict[str, Any]]:
        """Pull the Cloudflare "errors" list out of a response body, if any."""
        try:
            body = response.json()
        except ValueError:
            return []

        if not isinstance(body, dict):
            return []

        errors = body.get('errors') or []
        return [e for e in errors if isinstance(e, dict)]

    def log_error(self, error: RetentionError):
        """Log an error with appropriate level.

        Args:
            error: The error to log
        """
        log_message = error.to_user_message()

        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR):
            self.logger.error(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        self.logger.debug(f"Error details: {error.to_dict()}")


# Global error handler instance
error_handler = ErrorHandler()
