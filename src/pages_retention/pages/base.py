"""Deployment hosting API interface."""

from abc import ABC, abstractmethod
from typing import Iterator

from pages_retention.history.models import DeploymentRecord


class DeploymentsAPI(ABC):
    """Operations on a project's deployment history that retention runs depend on."""

    @abstractmethod
    def list_deployments(
        self, project_name: str, account_id: str, environment: str
    ) -> Iterator[DeploymentRecord]:
        """Lazily list every deployment of a project in one environment.

        Args:
            project_name: Pages project name
            account_id: Account that owns the project
            environment: Environment filter (production or preview)

        Returns:
            Iterator over all deployments, fetching pages as needed
        """
        pass

    @abstractmethod
    def delete_deployment(self, project_name: str, account_id: str, deployment_id: str) -> None:
        """Delete one deployment.

        Args:
            project_name: Pages project name
            account_id: Account that owns the project
            deployment_id: ID of the deployment to delete

        Raises:
            DeploymentNotFoundError: If the deployment does not exist
            PagesAPIError: For any other API or transport failure
        """
        pass
