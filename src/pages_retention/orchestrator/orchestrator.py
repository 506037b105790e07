"""Main orchestrator that sequences fetch, classification and deletion."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from pages_retention.config.models import RetentionConfig
from pages_retention.history.models import DeploymentRecord, RetentionDecision
from pages_retention.history.retention import RetentionClassifier, RetentionPolicy
from pages_retention.orchestrator.executor import (
    DeletionExecutor,
    DeletionSummary,
    ProgressCallback
)
from pages_retention.pages.base import DeploymentsAPI
from pages_retention.pages.fetcher import DeploymentFetcher
from pages_retention.utils.errors import (
    ErrorContext,
    FetchError,
    NoProtectedDeploymentError,
    RetentionError,
    error_handler
)
from pages_retention.utils.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunState(Enum):
    """State of a retention run."""
    IDLE = "idle"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    DELETING = "deleting"
    ABORTED = "aborted"
    DONE = "done"


@dataclass
class RunSummary:
    """Outcome of one retention run."""

    state: RunState
    environment: str
    dry_run: bool = False
    fetched_count: int = 0
    decision: Optional[RetentionDecision] = None
    deletion: Optional[DeletionSummary] = None
    error: Optional[RetentionError] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: float = 0.0  # seconds

    @property
    def protected(self) -> Optional[DeploymentRecord]:
        return self.decision.protected if self.decision else None

    @property
    def candidate_count(self) -> int:
        return len(self.decision.delete_candidates) if self.decision else 0

    def is_done(self) -> bool:
        """Check if the run reached the end."""
        return self.state == RunState.DONE

    def is_aborted(self) -> bool:
        """Check if the run was aborted before deleting."""
        return self.state == RunState.ABORTED


class RetentionOrchestrator:
    """Coordinates fetching, classification and deletion for one environment."""

    def __init__(
        self,
        config: RetentionConfig,
        api: DeploymentsAPI,
        clock: Optional[Clock] = None
    ):
        """Initialize retention orchestrator.

        Args:
            config: Retention configuration
            api: Deployment hosting API
            clock: Returns the current time; defaults to the UTC wall clock
        """
        self.config = config
        self.api = api
        self.clock = clock or utc_now
        self.environment = config.environment.value

        # Initialize components
        self.fetcher = DeploymentFetcher(api, config.project_name, config.account_id)
        self.classifier = RetentionClassifier(RetentionPolicy.from_config(config))
        self.executor = DeletionExecutor(api, config.project_name, config.account_id)

        self.state = RunState.IDLE
        self.logger = get_logger(__name__)

    def _transition(self, state: RunState) -> None:
        self.logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state

    def plan(self, now: Optional[datetime] = None) -> RetentionDecision:
        """Fetch and classify deployments without deleting anything.

        Args:
            now: Instant to measure ages against; read from the clock when omitted

        Returns:
            RetentionDecision for the current snapshot

        Raises:
            FetchError: If the deployments could not be listed
        """
        records = self.fetcher.fetch(self.environment)
        return self.classifier.classify(records, now or self.clock())

    def run(
        self,
        dry_run: bool = False,
        progress_callback: Optional[ProgressCallback] = None
    ) -> RunSummary:
        """Execute one retention run.

        Args:
            dry_run: If True, classify and report but issue no deletions
            progress_callback: Optional callback for deletion progress

        Returns:
            RunSummary in state DONE or ABORTED
        """
        self.state = RunState.IDLE
        summary = RunSummary(
            state=self.state,
            environment=self.environment,
            dry_run=dry_run,
            start_time=utc_now()
        )

        self._transition(RunState.FETCHING)
        try:
            records: List[DeploymentRecord] = self.fetcher.fetch(self.environment)
        except FetchError as e:
            error_handler.log_error(e)
            return self._finish(summary, RunState.ABORTED, error=e)

        summary.fetched_count = len(records)

        self._transition(RunState.CLASSIFYING)
        decision = self.classifier.classify(records, self.clock())
        summary.decision = decision

        if not decision.has_protected():
            error = NoProtectedDeploymentError(
                "No successful deployments found. Aborting.",
                context=ErrorContext(
                    operation="classify",
                    project_name=self.config.project_name,
                    environment=self.environment,
                    additional_info={"fetched": len(records)}
                ),
                suggestions=["Check that the project has at least one successful deployment"]
            )
            error_handler.log_error(error)
            return self._finish(summary, RunState.ABORTED, error=error)

        self.logger.info(f"Deployments to delete: {len(decision.delete_candidates)}")

        self._transition(RunState.DELETING)
        summary.deletion = self.executor.execute(
            decision.delete_candidates,
            progress_callback=progress_callback,
            dry_run=dry_run
        )

        return self._finish(summary, RunState.DONE)

    def _finish(
        self,
        summary: RunSummary,
        state: RunState,
        error: Optional[RetentionError] = None
    ) -> RunSummary:
        """Stamp the summary with its terminal state and timing."""
        self._transition(state)
        summary.state = state
        summary.error = error
        summary.end_time = utc_now()
        summary.duration = (summary.end_time - summary.start_time).total_seconds()

        if state == RunState.DONE:
            deletion = summary.deletion
            self.logger.info(
                f"Done. fetched={summary.fetched_count} "
                f"protected={summary.protected.id if summary.protected else None} "
                f"candidates={summary.candidate_count} "
                f"deleted={deletion.deleted_count if deletion else 0} "
                f"failed={deletion.failed_count if deletion else 0}"
            )
        else:
            self.logger.warning(f"Run aborted after fetching {summary.fetched_count} deployments")

        return summary
