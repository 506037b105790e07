"""Data models for Pages deployment history."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class StageStatus(Enum):
    """Status of the latest stage of a deployment."""

    SUCCESS = "success"
    IDLE = "idle"
    ACTIVE = "active"
    FAILURE = "failure"
    CANCELED = "canceled"

    @property
    def retention_rule(self) -> "RetentionRule":
        """Retention rule that applies to deployments in this status."""
        return STATUS_RETENTION_RULES[self]


class RetentionRule(Enum):
    """How a stage status affects deletion."""

    NEVER_REMOVE = "never_remove"
    ALWAYS_REMOVE = "always_remove"
    AGE_BASED = "age_based"


STATUS_RETENTION_RULES: Dict[StageStatus, RetentionRule] = {
    StageStatus.ACTIVE: RetentionRule.NEVER_REMOVE,
    StageStatus.FAILURE: RetentionRule.ALWAYS_REMOVE,
    StageStatus.CANCELED: RetentionRule.ALWAYS_REMOVE,
    StageStatus.SUCCESS: RetentionRule.AGE_BASED,
    StageStatus.IDLE: RetentionRule.AGE_BASED,
}


class RetentionReason(Enum):
    """Why a deployment was kept or selected for deletion."""

    PROTECTED = "protected"
    NEVER_REMOVE = "never_remove"
    ALWAYS_REMOVE = "always_remove"
    WITHIN_EXPIRATION = "within_expiration"
    EXPIRED = "expired"


class DeploymentRecord(BaseModel):
    """One historical deployment of a Pages project."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique deployment ID")
    created_on: datetime = Field(..., description="Creation time")
    stage_status: StageStatus = Field(..., description="Status of the latest stage")
    environment: Optional[str] = Field(None, description="production or preview")
    url: Optional[str] = Field(None, description="Deployment URL")
    short_id: Optional[str] = Field(None, description="Short deployment ID")

    @field_validator("created_on")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "DeploymentRecord":
        """Build a record from a Cloudflare deployment object.

        Args:
            payload: One entry of the ``result`` list of the deployments endpoint

        Returns:
            DeploymentRecord

        Raises:
            ValueError: If required fields are missing or the status is unknown
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Deployment payload must be an object, got {type(payload).__name__}")

        latest_stage = payload.get("latest_stage") or {}
        try:
            return cls(
                id=payload.get("id"),
                created_on=payload.get("created_on"),
                stage_status=latest_stage.get("status"),
                environment=payload.get("environment"),
                url=payload.get("url"),
                short_id=payload.get("short_id"),
            )
        except ValidationError as e:
            raise ValueError(
                f"Malformed deployment payload (id={payload.get('id')!r}): {e}"
            ) from e

    def age_hours(self, now: datetime) -> float:
        """Age of the deployment in hours at ``now``."""
        return (now - self.created_on).total_seconds() / 3600


@dataclass
class RecordVerdict:
    """Retention verdict for a single deployment."""

    record: DeploymentRecord
    delete: bool
    reason: RetentionReason


@dataclass
class RetentionDecision:
    """Partition of a snapshot into a protected deployment and delete candidates."""

    protected: Optional[DeploymentRecord] = None
    delete_candidates: List[DeploymentRecord] = field(default_factory=list)
    verdicts: List[RecordVerdict] = field(default_factory=list)

    @property
    def kept(self) -> List[DeploymentRecord]:
        """Records that are not deleted."""
        return [v.record for v in self.verdicts if not v.delete]

    def has_protected(self) -> bool:
        """Check if a protected deployment was found."""
        return self.protected is not None

    def candidate_ids(self) -> List[str]:
        """IDs of the delete candidates, in order."""
        return [record.id for record in self.delete_candidates]
