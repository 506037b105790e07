"""Retention policy for Pages deployment history."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pages_retention.config.models import DEFAULT_EXPIRATION_HOURS, RetentionConfig
from pages_retention.history.models import (
    DeploymentRecord,
    RecordVerdict,
    RetentionDecision,
    RetentionReason,
    RetentionRule,
    StageStatus,
)
from pages_retention.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RetentionPolicy:
    """Retention policy configuration."""

    # Delete non-exempt deployments older than X hours
    expiration_hours: float = DEFAULT_EXPIRATION_HOURS

    @classmethod
    def from_config(cls, config: RetentionConfig) -> "RetentionPolicy":
        return cls(expiration_hours=config.expiration_hours)


def select_protected(records: Iterable[DeploymentRecord]) -> Optional[DeploymentRecord]:
    """Pick the most recently created successful deployment.

    Ties on ``created_on`` go to the record that appears first.

    Args:
        records: Deployment snapshot

    Returns:
        The protected deployment, or None if there is no successful one
    """
    protected = None
    for record in records:
        if record.stage_status != StageStatus.SUCCESS:
            continue
        if protected is None or record.created_on > protected.created_on:
            protected = record
    return protected


class RetentionClassifier:
    """Decides which deployments of a snapshot may be deleted."""

    def __init__(self, policy: RetentionPolicy):
        """
        Initialize retention classifier.

        Args:
            policy: Retention policy to apply
        """
        self.policy = policy
        self.logger = get_logger(__name__)

    def classify(self, records: List[DeploymentRecord], now: datetime) -> RetentionDecision:
        """
        Partition a snapshot into the protected deployment and delete candidates.

        Args:
            records: Full deployment snapshot for one environment
            now: Current time; a naive value is taken as UTC

        Returns:
            RetentionDecision with one verdict per record, in snapshot order
        """
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        protected = select_protected(records)
        if protected:
            self.logger.info(
                f"Latest successful deployment: {protected.id} (created on {protected.created_on.isoformat()})"
            )
        else:
            self.logger.warning("No successful deployment found in snapshot")

        decision = RetentionDecision(protected=protected)

        for record in records:
            verdict = self._judge(record, protected, now)
            decision.verdicts.append(verdict)

            if verdict.delete:
                decision.delete_candidates.append(record)
            else:
                self.logger.debug(f"Keeping deployment {record.id} (reason: {verdict.reason.value})")

        self.logger.info(
            f"Classified {len(records)} deployments: {len(decision.delete_candidates)} to delete, "
            f"{len(records) - len(decision.delete_candidates)} to keep"
        )
        return decision

    def _judge(
        self, record: DeploymentRecord, protected: Optional[DeploymentRecord], now: datetime
    ) -> RecordVerdict:
        """Apply the retention rules to one record; the first matching rule wins."""
        if protected is not None and record.id == protected.id:
            return RecordVerdict(record, delete=False, reason=RetentionReason.PROTECTED)

        rule = record.stage_status.retention_rule
        if rule == RetentionRule.NEVER_REMOVE:
            return RecordVerdict(record, delete=False, reason=RetentionReason.NEVER_REMOVE)
        if rule == RetentionRule.ALWAYS_REMOVE:
            return RecordVerdict(record, delete=True, reason=RetentionReason.ALWAYS_REMOVE)

        if record.age_hours(now) <= self.policy.expiration_hours:
            return RecordVerdict(record, delete=False, reason=RetentionReason.WITHIN_EXPIRATION)

        return RecordVerdict(record, delete=True, reason=RetentionReason.EXPIRED)
