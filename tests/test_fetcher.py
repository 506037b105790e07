"""Tests for the deployment fetcher."""

import pytest

from conftest import FakeDeploymentsAPI
from pages_retention.history.models import StageStatus
from pages_retention.pages.fetcher import DeploymentFetcher
from pages_retention.utils.errors import ErrorCategory, FetchError, NetworkError


class TestDeploymentFetcher:
    """Tests for DeploymentFetcher.fetch."""

    def test_fetches_all_records(self, scenario_records) -> None:
        """The whole listing is returned."""
        api = FakeDeploymentsAPI(records=scenario_records)
        fetcher = DeploymentFetcher(api, "my-site", "acc-123")

        records = fetcher.fetch("production")

        assert [r.id for r in records] == ["A", "B", "C", "D"]
        assert api.list_calls == [("my-site", "acc-123", "production")]

    def test_passes_environment(self) -> None:
        """The requested environment is forwarded to the API."""
        api = FakeDeploymentsAPI()
        DeploymentFetcher(api, "my-site", "acc-123").fetch("preview")
        assert api.list_calls[0][2] == "preview"

    def test_empty(self) -> None:
        """An empty listing is an empty snapshot, not an error."""
        assert DeploymentFetcher(FakeDeploymentsAPI(), "my-site", "acc-123").fetch("production") == []

    def test_partial_listing_fails_whole_fetch(self, make_record) -> None:
        """A failure after some records were received discards them and raises."""
        records = [make_record(str(i), StageStatus.SUCCESS, i) for i in range(5)]
        api = FakeDeploymentsAPI(records=records, fail_list_after=3)

        with pytest.raises(FetchError) as exc_info:
            DeploymentFetcher(api, "my-site", "acc-123").fetch("production")

        error = exc_info.value
        assert error.category == ErrorCategory.FETCH
        assert isinstance(error.cause, NetworkError)
        assert error.context.environment == "production"
        assert "my-site" in error.message
