"""Tests for the retention orchestrator."""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from conftest import FakeDeploymentsAPI
from pages_retention.config.models import Environment
from pages_retention.history.models import StageStatus
from pages_retention.orchestrator.orchestrator import RetentionOrchestrator, RunState
from pages_retention.utils.errors import FetchError, NetworkError, NoProtectedDeploymentError


@pytest.fixture
def clock(now):
    return lambda: now


class TestRunState:
    """Tests for RunState enum."""

    def test_all_states_defined(self) -> None:
        """All expected run states are defined."""
        expected = {"idle", "fetching", "classifying", "deleting", "aborted", "done"}
        assert {s.value for s in RunState} == expected


class TestRetentionOrchestrator:
    """Tests for RetentionOrchestrator.run."""

    def test_mixed_snapshot(self, config, scenario_records, clock) -> None:
        """Only the older success and the failure are deleted."""
        api = FakeDeploymentsAPI(records=scenario_records)
        orchestrator = RetentionOrchestrator(config, api, clock=clock)

        summary = orchestrator.run()

        assert summary.state == RunState.DONE
        assert orchestrator.state == RunState.DONE
        assert summary.fetched_count == 4
        assert summary.protected.id == "B"
        assert summary.candidate_count == 2
        assert api.delete_calls == ["A", "C"]
        assert summary.deletion.deleted_count == 2
        assert summary.error is None
        assert [r.id for r in api.records] == ["B", "D"]

    def test_uses_configured_environment(self, config, scenario_records, clock) -> None:
        """The fetch is filtered by the configured environment."""
        preview = config.model_copy(update={"environment": Environment.PREVIEW})
        api = FakeDeploymentsAPI(records=scenario_records)

        RetentionOrchestrator(preview, api, clock=clock).run()

        assert api.list_calls == [("my-site", "acc-123", "preview")]

    def test_empty_snapshot_aborts(self, config, clock) -> None:
        """An empty snapshot aborts with zero deletions."""
        api = FakeDeploymentsAPI()
        summary = RetentionOrchestrator(config, api, clock=clock).run()

        assert summary.state == RunState.ABORTED
        assert summary.is_aborted() is True
        assert isinstance(summary.error, NoProtectedDeploymentError)
        assert summary.deletion is None
        assert api.delete_calls == []

    def test_no_success_aborts_even_with_failures(self, config, make_record, clock) -> None:
        """Without a known-good deployment nothing is deleted, not even failures."""
        api = FakeDeploymentsAPI(records=[
            make_record("f1", StageStatus.FAILURE, 100),
            make_record("c1", StageStatus.CANCELED, 100),
            make_record("i1", StageStatus.IDLE, 100),
        ])
        summary = RetentionOrchestrator(config, api, clock=clock).run()

        assert summary.state == RunState.ABORTED
        assert summary.fetched_count == 3
        assert summary.candidate_count == 3
        assert api.delete_calls == []

    def test_only_protected_deployment(self, config, make_record, clock) -> None:
        """A lone successful deployment completes with nothing to delete."""
        api = FakeDeploymentsAPI(records=[make_record("only", StageStatus.SUCCESS, 500)])
        summary = RetentionOrchestrator(config, api, clock=clock).run()

        assert summary.state == RunState.DONE
        assert summary.protected.id == "only"
        assert summary.deletion.total_count == 0
        assert api.delete_calls == []

    def test_fetch_failure_aborts(self, config, scenario_records, clock) -> None:
        """A listing failure aborts before classification."""
        api = FakeDeploymentsAPI(records=scenario_records, fail_list_after=2)
        summary = RetentionOrchestrator(config, api, clock=clock).run()

        assert summary.state == RunState.ABORTED
        assert isinstance(summary.error, FetchError)
        assert summary.decision is None
        assert summary.fetched_count == 0
        assert api.delete_calls == []

    def test_deletion_failures_still_done(self, config, scenario_records, clock) -> None:
        """Per-item deletion failures do not change the terminal state."""
        api = FakeDeploymentsAPI(records=scenario_records, fail_delete={"A": NetworkError("down")})
        summary = RetentionOrchestrator(config, api, clock=clock).run()

        assert summary.state == RunState.DONE
        assert summary.deletion.failed_ids() == ["A"]
        assert summary.deletion.deleted_count == 1
        assert api.delete_calls == ["A", "C"]

    def test_dry_run(self, config, scenario_records, clock) -> None:
        """Dry runs classify but issue no delete calls."""
        api = FakeDeploymentsAPI(records=scenario_records)
        summary = RetentionOrchestrator(config, api, clock=clock).run(dry_run=True)

        assert summary.state == RunState.DONE
        assert summary.dry_run is True
        assert summary.deletion.skipped_count == 2
        assert api.delete_calls == []

    def test_each_run_starts_fresh(self, config, scenario_records, clock) -> None:
        """A second run recomputes from a new snapshot."""
        api = FakeDeploymentsAPI(records=scenario_records)
        orchestrator = RetentionOrchestrator(config, api, clock=clock)

        orchestrator.run()
        second = orchestrator.run()

        assert second.state == RunState.DONE
        assert second.fetched_count == 2
        assert second.candidate_count == 0
        assert api.delete_calls == ["A", "C"]

    def test_plan_does_not_delete(self, config, scenario_records, clock) -> None:
        """plan returns the decision without deleting."""
        api = FakeDeploymentsAPI(records=scenario_records)
        decision = RetentionOrchestrator(config, api, clock=clock).plan()

        assert decision.candidate_ids() == ["A", "C"]
        assert api.delete_calls == []

    def test_plan_uses_given_now(self, config, make_record, now) -> None:
        """An explicit reference time is used instead of the clock."""
        api = FakeDeploymentsAPI(records=[
            make_record("latest", StageStatus.SUCCESS, 1),
            make_record("edge", StageStatus.IDLE, 6 - 1 / 3600),
        ])
        later = Mock(return_value=now + timedelta(seconds=2))

        decision = RetentionOrchestrator(config, api, clock=later).plan(now=now)

        assert decision.candidate_ids() == []
        later.assert_not_called()

    def test_plan_raises_fetch_error(self, config, scenario_records, clock) -> None:
        """plan propagates fetch failures."""
        api = FakeDeploymentsAPI(records=scenario_records, fail_list_after=0)
        with pytest.raises(FetchError):
            RetentionOrchestrator(config, api, clock=clock).plan()

    def test_summary_timing(self, config, scenario_records, clock) -> None:
        """The summary records start and end times."""
        summary = RetentionOrchestrator(config, FakeDeploymentsAPI(records=scenario_records), clock=clock).run()
        assert summary.start_time is not None
        assert summary.end_time >= summary.start_time
        assert summary.duration >= 0
