"""Snapshot fetching of deployment history."""

from typing import List

from pages_retention.history.models import DeploymentRecord
from pages_retention.pages.base import DeploymentsAPI
from pages_retention.utils.errors import ErrorContext, FetchError
from pages_retention.utils.logging import get_logger

logger = get_logger(__name__)


class DeploymentFetcher:
    """Retrieves the complete deployment snapshot for an environment."""

    def __init__(self, api: DeploymentsAPI, project_name: str, account_id: str):
        """
        Initialize deployment fetcher.

        Args:
            api: Deployment hosting API
            project_name: Pages project name
            account_id: Account that owns the project
        """
        self.api = api
        self.project_name = project_name
        self.account_id = account_id

    def fetch(self, environment: str) -> List[DeploymentRecord]:
        """
        Fetch every deployment of the project in ``environment``.

        Args:
            environment: Environment filter (production or preview)

        Returns:
            All deployment records

        Raises:
            FetchError: If listing fails on any page; partial results are discarded
        """
        logger.info(f"Fetching deployments for {self.project_name} ({environment})")

        try:
            records = list(
                self.api.list_deployments(self.project_name, self.account_id, environment)
            )
        except Exception as e:
            raise FetchError(
                f"Failed to list deployments for {self.project_name} ({environment}): {e}",
                context=ErrorContext(
                    operation="fetch",
                    project_name=self.project_name,
                    environment=environment,
                ),
                cause=e,
                suggestions=getattr(e, "suggestions", None),
            ) from e

        logger.info(f"Existing deployments in environment {environment}: {len(records)}")
        return records
