"""Configuration for retention runs."""

from .models import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_EXPIRATION_HOURS,
    REDACTED_PLACEHOLDER,
    Environment,
    RetentionConfig,
)
from .loader import load_config, parse_hours_or_default, read_environment

__all__ = [
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_EXPIRATION_HOURS",
    "REDACTED_PLACEHOLDER",
    "Environment",
    "RetentionConfig",
    "load_config",
    "parse_hours_or_default",
    "read_environment",
]
