"""Environment-based configuration loader for retention runs."""

import math
import os
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values, find_dotenv
from pydantic import ValidationError

from pages_retention.config.models import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_EXPIRATION_HOURS,
    Environment,
    RetentionConfig,
)
from pages_retention.utils.errors import ConfigurationError
from pages_retention.utils.logging import get_logger

logger = get_logger(__name__)

ENV_API_TOKEN = "CF_API_TOKEN"
ENV_ACCOUNT_ID = "CF_ACCOUNT_ID"
ENV_PROJECT_NAME = "CF_PROJECT_NAME"
ENV_EXPIRATION_HOURS = "CF_EXPIRATION_HOURS"
ENV_ENVIRONMENT = "CF_ENV"


def parse_hours_or_default(raw: Optional[str], default: float = DEFAULT_EXPIRATION_HOURS) -> float:
    """Parse an expiration threshold, falling back to ``default``.

    Empty, unparseable, negative and non-finite values all fall back.

    Args:
        raw: Raw value, typically from the environment
        default: Value used when ``raw`` is not a usable threshold

    Returns:
        Threshold in hours
    """
    if raw is None or not str(raw).strip():
        return default

    try:
        value = float(str(raw).strip())
    except ValueError:
        logger.warning(f"Unparseable expiration hours '{raw}', using default {default}")
        return default

    if not math.isfinite(value) or value < 0:
        logger.warning(f"Invalid expiration hours '{raw}', using default {default}")
        return default

    return value


def read_environment(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> Dict[str, str]:
    """Merge values from a .env file with the process environment.

    Real environment variables take precedence over the .env file.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)
        dotenv_path: Path to a .env file (defaults to one found in the cwd)

    Returns:
        Merged mapping of variable names to values
    """
    if environ is None:
        environ = os.environ

    if dotenv_path is None:
        dotenv_path = find_dotenv(usecwd=True)

    values: Dict[str, str] = {}
    if dotenv_path:
        logger.debug(f"Loading environment file: {dotenv_path}")
        values.update({k: v for k, v in dotenv_values(dotenv_path).items() if v is not None})

    values.update(environ)
    return values


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    dotenv_path: Optional[str] = None,
) -> RetentionConfig:
    """Build and validate the retention configuration.

    Args:
        environ: Environment mapping; ``None`` reads .env and ``os.environ``
        overrides: Field values that take precedence (e.g. from CLI options);
            ``None`` entries are ignored
        dotenv_path: Explicit .env file, only used when ``environ`` is None

    Returns:
        Validated RetentionConfig

    Raises:
        ConfigurationError: If a required value is missing or a value is invalid
    """
    if environ is None:
        environ = read_environment(dotenv_path=dotenv_path)

    data: Dict[str, Any] = {
        "api_token": environ.get(ENV_API_TOKEN, "").strip(),
        "account_id": environ.get(ENV_ACCOUNT_ID, "").strip(),
        "project_name": environ.get(ENV_PROJECT_NAME, "").strip(),
        "expiration_hours": parse_hours_or_default(environ.get(ENV_EXPIRATION_HOURS)),
        "environment": environ.get(ENV_ENVIRONMENT, "").strip() or DEFAULT_ENVIRONMENT.value,
    }

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    problems = []
    if not data["api_token"]:
        problems.append(f"API token is missing (set {ENV_API_TOKEN})")
    if not data["account_id"]:
        problems.append(f"Account ID is missing (set {ENV_ACCOUNT_ID})")
    if not data["project_name"]:
        problems.append(f"Project name is missing (set {ENV_PROJECT_NAME})")

    environment = data["environment"]
    if isinstance(environment, str):
        valid = [e.value for e in Environment]
        if environment not in valid:
            problems.append(
                f"Invalid environment '{environment}'. Must be one of: {', '.join(valid)}"
            )

    if problems:
        for problem in problems:
            logger.error(problem)
        raise ConfigurationError("Invalid configuration", problems=problems)

    try:
        config = RetentionConfig(**data)
    except ValidationError as e:
        problems = [
            f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError("Invalid configuration", problems=problems, cause=e)

    logger.info(f"Using configuration: {config.to_logging_safe()}")
    return config
