"""Pydantic models for retention configuration."""

import math
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_EXPIRATION_HOURS = 6.0
REDACTED_PLACEHOLDER = "*****"


class Environment(Enum):
    """Cloudflare Pages deployment environment."""

    PRODUCTION = "production"
    PREVIEW = "preview"


DEFAULT_ENVIRONMENT = Environment.PRODUCTION


class RetentionConfig(BaseModel):
    """Configuration for one retention run."""

    model_config = ConfigDict(frozen=True)

    api_token: str = Field(..., min_length=1, repr=False, description="Cloudflare API token")
    account_id: str = Field(..., min_length=1, description="Cloudflare account ID")
    project_name: str = Field(..., min_length=1, description="Pages project name")
    expiration_hours: float = Field(
        DEFAULT_EXPIRATION_HOURS,
        ge=0,
        description="Age in hours after which a non-exempt deployment may be deleted",
    )
    environment: Environment = Field(
        DEFAULT_ENVIRONMENT, description="Environment whose deployments are cleaned up"
    )

    @field_validator("expiration_hours")
    @classmethod
    def validate_expiration_hours(cls, v: float) -> float:
        """Reject NaN and infinity."""
        if not math.isfinite(v):
            raise ValueError(f"expiration_hours must be a finite number: {v}")
        return v

    def to_logging_safe(self) -> Dict[str, Any]:
        """Return the configuration with credentials replaced by a placeholder."""
        return {
            "api_token": REDACTED_PLACEHOLDER,
            "account_id": self.account_id,
            "project_name": self.project_name,
            "expiration_hours": self.expiration_hours,
            "environment": self.environment.value,
        }
