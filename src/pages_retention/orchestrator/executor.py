"""Deletion executor with per-deployment failure isolation."""

from typing import Callable, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from pages_retention.history.models import DeploymentRecord
from pages_retention.pages.base import DeploymentsAPI
from pages_retention.utils.errors import DeletionError, ErrorContext
from pages_retention.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


class DeletionStatus(Enum):
    """Status of a single deletion."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELETED = "deleted"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class DeletionResult:
    """Result of deleting a single deployment."""

    deployment_id: str
    status: DeletionStatus
    error: Optional[DeletionError] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: float = 0.0  # seconds

    def is_success(self) -> bool:
        """Check if the deployment was deleted."""
        return self.status == DeletionStatus.DELETED

    def is_failed(self) -> bool:
        """Check if the deletion failed."""
        return self.status == DeletionStatus.FAILED


@dataclass
class DeletionSummary:
    """Outcome of a whole deletion batch."""

    results: List[DeletionResult] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: float = 0.0  # seconds

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def deleted_count(self) -> int:
        return sum(1 for r in self.results if r.is_success())

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.is_failed())

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.status == DeletionStatus.SKIPPED)

    def has_failures(self) -> bool:
        """Check if any deletion failed."""
        return self.failed_count > 0

    def failed_ids(self) -> List[str]:
        """Get IDs of deployments that could not be deleted."""
        return [r.deployment_id for r in self.results if r.is_failed()]


# Type alias for progress callback
ProgressCallback = Callable[[str, DeletionStatus, Optional[str]], None]


class DeletionExecutor:
    """Deletes candidate deployments one at a time."""

    def __init__(self, api: DeploymentsAPI, project_name: str, account_id: str):
        """Initialize deletion executor.

        Args:
            api: Deployment hosting API
            project_name: Pages project name
            account_id: Account that owns the project
        """
        self.api = api
        self.project_name = project_name
        self.account_id = account_id
        self.logger = get_logger(__name__)

    def execute(
        self,
        candidates: List[DeploymentRecord],
        progress_callback: Optional[ProgressCallback] = None,
        dry_run: bool = False
    ) -> DeletionSummary:
        """Delete every candidate exactly once, in the order given.

        A failed deletion is recorded and the batch moves on to the next candidate.

        Args:
            candidates: Deployments to delete
            progress_callback: Optional callback for progress updates
            dry_run: If True, only report what would be deleted

        Returns:
            DeletionSummary with one result per candidate
        """
        self.logger.info(
            f"{'Would delete' if dry_run else 'Deleting'} {len(candidates)} deployments"
        )

        summary = DeletionSummary(start_time=datetime.now(timezone.utc))

        for candidate in candidates:
            if progress_callback:
                progress_callback(candidate.id, DeletionStatus.IN_PROGRESS, None)

            if dry_run:
                self.logger.info(f"Would delete deployment '{candidate.id}'")
                result = DeletionResult(deployment_id=candidate.id, status=DeletionStatus.SKIPPED)
            else:
                result = self._delete_deployment(candidate)

            summary.results.append(result)

            if progress_callback:
                progress_callback(
                    candidate.id,
                    result.status,
                    str(result.error) if result.error else None
                )

        summary.end_time = datetime.now(timezone.utc)
        summary.duration = (summary.end_time - summary.start_time).total_seconds()

        if summary.has_failures():
            self.logger.warning(
                f"Deletion finished with failures: {summary.deleted_count} deleted, "
                f"{summary.failed_count} failed"
            )
        else:
            self.logger.info(
                f"Deletion finished: {summary.deleted_count} deleted, {summary.skipped_count} skipped"
            )

        return summary

    def _delete_deployment(self, candidate: DeploymentRecord) -> DeletionResult:
        """Delete a single deployment.

        Args:
            candidate: Deployment to delete

        Returns:
            DeletionResult
        """
        deployment_id = candidate.id
        start_time = datetime.now(timezone.utc)

        with LogContext(self.logger, deployment_id=deployment_id, operation="delete"):
            try:
                self.logger.info(f"Deleting deployment '{deployment_id}'...")
                self.api.delete_deployment(self.project_name, self.account_id, deployment_id)

                end_time = datetime.now(timezone.utc)
                self.logger.info(f"Deployment '{deployment_id}' deleted.")

                return DeletionResult(
                    deployment_id=deployment_id,
                    status=DeletionStatus.DELETED,
                    start_time=start_time,
                    end_time=end_time,
                    duration=(end_time - start_time).total_seconds()
                )

            except Exception as e:
                end_time = datetime.now(timezone.utc)

                error = DeletionError(
                    f"Error deleting deployment '{deployment_id}': {str(e)}",
                    context=ErrorContext(
                        deployment_id=deployment_id,
                        operation="delete",
                        project_name=self.project_name,
                        status_code=getattr(getattr(e, "context", None), "status_code", None)
                    ),
                    cause=e
                )

                self.logger.error(error.message)

                return DeletionResult(
                    deployment_id=deployment_id,
                    status=DeletionStatus.FAILED,
                    error=error,
                    start_time=start_time,
                    end_time=end_time,
                    duration=(end_time - start_time).total_seconds()
                )
