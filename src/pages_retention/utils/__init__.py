"""Utility modules for logging and error handling."""

from pages_retention.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    RetentionError,
    ConfigurationError,
    FetchError,
    NoProtectedDeploymentError,
    DeletionError,
    PagesAPIError,
    CredentialError,
    DeploymentNotFoundError,
    RateLimitError,
    NetworkError,
    ErrorHandler,
    error_handler
)
from pages_retention.utils.logging import get_logger, setup_logging, LogContext

__all__ = [
    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'RetentionError',
    'ConfigurationError',
    'FetchError',
    'NoProtectedDeploymentError',
    'DeletionError',
    'PagesAPIError',
    'CredentialError',
    'DeploymentNotFoundError',
    'RateLimitError',
    'NetworkError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
    'LogContext',
]
