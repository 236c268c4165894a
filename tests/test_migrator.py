"""Tests for the work item migration orchestrator."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from codeplex_to_github_migrator import MigrationSettings, WorkItemMigrator
from codeplex_to_github_migrator.exceptions import TransientRequestError, WorkItemIdentificationError
from codeplex_to_github_migrator.models import MigratedWorkItem, MigrationState
from codeplex_to_github_migrator.settings import UNBOUNDED

from tests.conftest import InMemoryDestination, InMemoryWorkItemSource


def _migrator(
    source: InMemoryWorkItemSource, destination: InMemoryDestination, **settings: object
) -> WorkItemMigrator:
    return WorkItemMigrator(source, destination, MigrationSettings(**settings), sleep=lambda _seconds: None)  # type: ignore[arg-type]


@pytest.mark.unit
class TestWorkItemMigratorConstruction:
    def test_none_collaborators_are_rejected(self) -> None:
        source = InMemoryWorkItemSource([])
        destination = InMemoryDestination()

        with pytest.raises(ValueError, match="source"):
            WorkItemMigrator(None, destination, MigrationSettings())  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="destination"):
            WorkItemMigrator(source, None, MigrationSettings())  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="settings"):
            WorkItemMigrator(source, destination, None)  # type: ignore[arg-type]


@pytest.mark.unit
class TestWorkItemMigrator:
    def test_single_new_work_item_is_written(self) -> None:
        source = InMemoryWorkItemSource([1])
        destination = InMemoryDestination()

        result = _migrator(source, destination).migrate()

        assert destination.created == [1]
        assert destination.updated == []
        assert result.created == 1
        assert result.updated == 0

    def test_zero_work_items(self) -> None:
        source = InMemoryWorkItemSource([])
        destination = InMemoryDestination()

        result = _migrator(source, destination).migrate()

        assert source.list_calls == 1
        assert destination.created == []
        assert result.migrated == 0

    def test_work_items_are_migrated_in_source_order(self) -> None:
        source = InMemoryWorkItemSource([5, 3, 9, 1])
        destination = InMemoryDestination()

        _migrator(source, destination).migrate()

        assert source.fetched == [5, 3, 9, 1]
        assert destination.created == [5, 3, 9, 1]

    def test_partially_migrated_work_items_are_updated(self) -> None:
        source = InMemoryWorkItemSource([0, 1, 2])
        destination = InMemoryDestination(report=[MigratedWorkItem(1, MigrationState.PARTIALLY_MIGRATED)])

        result = _migrator(source, destination).migrate()

        assert destination.updated == [1]
        assert destination.created == [0, 2]
        assert result.updated == 1
        assert result.created == 2

    def test_second_run_writes_nothing(self) -> None:
        source = InMemoryWorkItemSource(list(range(6)))
        destination = InMemoryDestination(report=[MigratedWorkItem(2, MigrationState.PARTIALLY_MIGRATED)])

        _migrator(source, destination).migrate()
        writes_after_first_run = len(destination.created) + len(destination.updated)
        fetches_after_first_run = len(source.fetched)

        result = _migrator(source, destination).migrate()

        assert writes_after_first_run == 6
        assert len(destination.created) + len(destination.updated) == 6
        assert len(source.fetched) == fetches_after_first_run
        assert result.migrated == 0

    def test_skip_list_dominates_partially_migrated_state(self) -> None:
        source = InMemoryWorkItemSource([4])
        destination = InMemoryDestination(report=[MigratedWorkItem(4, MigrationState.PARTIALLY_MIGRATED)])

        _migrator(source, destination, work_items_to_skip=frozenset({4})).migrate()

        assert source.fetched == []
        assert destination.created == []
        assert destination.updated == []

    def test_mixed_report_and_skip_list(self) -> None:
        source = InMemoryWorkItemSource([0, 1, 2, 3, 4])
        destination = InMemoryDestination(
            report=[
                MigratedWorkItem(0, MigrationState.MIGRATED),
                MigratedWorkItem(1, MigrationState.MIGRATED),
                MigratedWorkItem(2, MigrationState.PARTIALLY_MIGRATED),
                MigratedWorkItem(3, MigrationState.PARTIALLY_MIGRATED),
            ]
        )

        _migrator(source, destination, work_items_to_skip=frozenset({1, 2, 5})).migrate()

        assert source.fetched == [3, 4]
        assert destination.updated == [3]
        assert destination.created == [4]

    def test_collision_fails_before_any_source_fetch(self) -> None:
        source = InMemoryWorkItemSource([0, 1])
        destination = InMemoryDestination(
            report=[MigratedWorkItem(1, MigrationState.MIGRATED), MigratedWorkItem(1, MigrationState.MIGRATED)]
        )

        with pytest.raises(WorkItemIdentificationError):
            _migrator(source, destination).migrate()

        assert source.list_calls == 0
        assert source.fetched == []

    def test_max_items_zero_migrates_nothing(self) -> None:
        source = InMemoryWorkItemSource([0, 1, 2, 3, 4])
        destination = InMemoryDestination()

        result = _migrator(source, destination, max_items_to_migrate=0).migrate()

        assert source.fetched == []
        assert destination.created == []
        assert destination.updated == []
        assert result.skipped == 5

    def test_max_items_truncates_candidates(self) -> None:
        source = InMemoryWorkItemSource([0, 1, 2, 3, 4])
        destination = InMemoryDestination()

        _migrator(source, destination, max_items_to_migrate=2).migrate()

        assert destination.created == [0, 1]

    def test_max_items_above_candidate_count_migrates_all(self) -> None:
        source = InMemoryWorkItemSource([0, 1, 2])
        destination = InMemoryDestination()

        _migrator(source, destination, max_items_to_migrate=10).migrate()

        assert destination.created == [0, 1, 2]

    def test_unbounded_migrates_all(self) -> None:
        source = InMemoryWorkItemSource(list(range(8)))
        destination = InMemoryDestination()

        _migrator(source, destination, max_items_to_migrate=UNBOUNDED).migrate()

        assert len(destination.created) == 8

    def test_transient_fetch_failures_are_retried(self) -> None:
        source = InMemoryWorkItemSource([1])
        source.fetch_failures[1] = [TransientRequestError("timeout"), TransientRequestError("timeout")]
        destination = InMemoryDestination()

        _migrator(source, destination, max_retry_count=3).migrate()

        assert source.fetched == [1, 1, 1]
        assert destination.created == [1]

    def test_transient_write_failures_are_retried(self) -> None:
        source = InMemoryWorkItemSource([1])
        destination = InMemoryDestination()
        destination.write_failures = [TransientRequestError("502")]

        _migrator(source, destination, max_retry_count=1).migrate()

        assert destination.created == [1]

    def test_exhausted_retries_abort_the_run(self) -> None:
        source = InMemoryWorkItemSource([1, 2, 3])
        source.fetch_failures[2] = [TransientRequestError("down")] * 4
        destination = InMemoryDestination()

        with pytest.raises(TransientRequestError, match="down"):
            _migrator(source, destination, max_retry_count=3).migrate()

        assert source.fetched == [1, 2, 2, 2, 2]
        assert destination.created == [1]

    def test_non_transient_write_failure_is_not_retried(self) -> None:
        source = InMemoryWorkItemSource([1, 2])
        destination = InMemoryDestination()
        destination.write_failures = [WorkItemIdentificationError("ambiguous")]

        with pytest.raises(WorkItemIdentificationError):
            _migrator(source, destination, max_retry_count=3).migrate()

        assert source.fetched == [1]
        assert destination.created == []

    def test_rerun_after_failure_completes_remaining_items(self) -> None:
        source = InMemoryWorkItemSource([1, 2, 3])
        source.fetch_failures[2] = [ValueError("corrupt")]
        destination = InMemoryDestination()

        with pytest.raises(ValueError):
            _migrator(source, destination).migrate()
        _migrator(source, destination).migrate()

        assert destination.created == [1, 2, 3]

    def test_destination_report_failure_is_not_retried(self) -> None:
        source = InMemoryWorkItemSource([1])
        destination = Mock()
        destination.get_migrated_work_items.side_effect = TransientRequestError("search down")

        with pytest.raises(TransientRequestError):
            _migrator(source, destination).migrate()

        destination.get_migrated_work_items.assert_called_once()
        assert source.list_calls == 0


@pytest.mark.unit
class TestWorkItemMigratorLogging:
    def test_failure_is_logged_once_at_error(self, caplog: pytest.LogCaptureFixture) -> None:
        source = InMemoryWorkItemSource([1])
        destination = InMemoryDestination()
        destination.write_failures = [RuntimeError("boom")]

        with caplog.at_level("DEBUG", logger="codeplex_to_github_migrator"), pytest.raises(RuntimeError):
            _migrator(source, destination).migrate()

        errors = [r for r in caplog.records if r.levelname == "ERROR"]
        assert len(errors) == 1
        assert "boom" in errors[0].getMessage()
        assert "Migration completed successfully" not in caplog.text

    def test_progress_and_completion_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        source = InMemoryWorkItemSource([10, 11])
        destination = InMemoryDestination()

        with caplog.at_level("INFO", logger="codeplex_to_github_migrator"):
            _migrator(source, destination).migrate()

        assert "Successfully migrated work item 10 (1/2): Work item 10" in caplog.text
        assert "Successfully migrated work item 11 (2/2): Work item 11" in caplog.text
        assert "Migration completed successfully" in caplog.text
