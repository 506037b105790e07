"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator, List, Optional

import pytest

from pages_retention.config.models import RetentionConfig
from pages_retention.history.models import DeploymentRecord, StageStatus
from pages_retention.pages.base import DeploymentsAPI
from pages_retention.utils.errors import DeploymentNotFoundError, NetworkError

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeDeploymentsAPI(DeploymentsAPI):
    """In-memory deployment API with canned data and failures."""

    def __init__(
        self,
        records: Optional[List[DeploymentRecord]] = None,
        fail_delete: Optional[Dict[str, Exception]] = None,
        fail_list_after: Optional[int] = None,
    ):
        self.records = list(records or [])
        self.fail_delete = fail_delete or {}
        self.fail_list_after = fail_list_after
        self.list_calls: List[tuple] = []
        self.delete_calls: List[str] = []

    def list_deployments(
        self, project_name: str, account_id: str, environment: str
    ) -> Iterator[DeploymentRecord]:
        self.list_calls.append((project_name, account_id, environment))
        for index, record in enumerate(self.records):
            if self.fail_list_after is not None and index >= self.fail_list_after:
                raise NetworkError("connection reset while listing page 2")
            yield record

    def delete_deployment(self, project_name: str, account_id: str, deployment_id: str) -> None:
        self.delete_calls.append(deployment_id)
        if deployment_id in self.fail_delete:
            raise self.fail_delete[deployment_id]
        self.records = [r for r in self.records if r.id != deployment_id]


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return NOW


@pytest.fixture
def make_record() -> Callable[..., DeploymentRecord]:
    """Factory for deployment records with a given age in hours."""

    def _make(deployment_id: str, status: StageStatus, age_hours: float) -> DeploymentRecord:
        return DeploymentRecord(
            id=deployment_id,
            created_on=NOW - timedelta(hours=age_hours),
            stage_status=status,
            environment="production",
        )

    return _make


@pytest.fixture
def config() -> RetentionConfig:
    """Valid retention configuration."""
    return RetentionConfig(
        api_token="secret-token",
        account_id="acc-123",
        project_name="my-site",
        expiration_hours=6,
    )


@pytest.fixture
def scenario_records(make_record) -> List[DeploymentRecord]:
    """Mixed snapshot: two successes, a fresh failure and an old active deployment."""
    return [
        make_record("A", StageStatus.SUCCESS, 10),
        make_record("B", StageStatus.SUCCESS, 1),
        make_record("C", StageStatus.FAILURE, 0.1),
        make_record("D", StageStatus.ACTIVE, 100),
    ]


@pytest.fixture
def not_found_error() -> DeploymentNotFoundError:
    return DeploymentNotFoundError("Resource not found (8000009: deployment not found)")
