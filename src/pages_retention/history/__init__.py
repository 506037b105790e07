"""Deployment history models and retention policy."""

from .models import (
    DeploymentRecord,
    RecordVerdict,
    RetentionDecision,
    RetentionReason,
    RetentionRule,
    StageStatus,
    STATUS_RETENTION_RULES,
)
from .retention import RetentionClassifier, RetentionPolicy, select_protected

__all__ = [
    "DeploymentRecord",
    "RecordVerdict",
    "RetentionDecision",
    "RetentionReason",
    "RetentionRule",
    "StageStatus",
    "STATUS_RETENTION_RULES",
    "RetentionClassifier",
    "RetentionPolicy",
    "select_protected",
]
