"""
Pytest configuration and shared test doubles.

InMemoryWorkItemSource and InMemoryDestination behave like CodePlex and a
GitHub repository that converges: every written or updated work item is
reported as MIGRATED by later runs.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from codeplex_to_github_migrator.models import (
    MigratedWorkItem,
    MigrationState,
    WorkItem,
    WorkItemDetails,
    WorkItemSummary,
)


class FakeClock:
    """Manually advanced monotonic clock whose sleep advances time."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryWorkItemSource:
    """Work item source over a fixed list of work items."""

    def __init__(self, work_item_ids: list[int]) -> None:
        self.summaries = [WorkItemSummary(id=i, title=f"Work item {i}") for i in work_item_ids]
        self.list_calls = 0
        self.fetched: list[int] = []
        self.fetch_failures: dict[int, list[Exception]] = {}

    def get_work_items(self, include_predicate: Callable[[int], bool]) -> list[WorkItemSummary]:
        self.list_calls += 1
        return [s for s in self.summaries if include_predicate(s.id)]

    def get_work_item(self, summary: WorkItemSummary) -> WorkItemDetails:
        self.fetched.append(summary.id)
        failures = self.fetch_failures.get(summary.id)
        if failures:
            raise failures.pop(0)
        return WorkItemDetails(work_item=WorkItem(id=summary.id, summary=summary.title))


class InMemoryDestination:
    """Destination that records writes and reports them on later runs."""

    def __init__(self, report: list[MigratedWorkItem] | None = None) -> None:
        self.states: dict[int, MigrationState] = {}
        self.extra_report: list[MigratedWorkItem] = list(report or [])
        self.created: list[int] = []
        self.updated: list[int] = []
        self.write_failures: list[Exception] = []

    def get_migrated_work_items(self) -> list[MigratedWorkItem]:
        reported = [MigratedWorkItem(i, state) for i, state in self.states.items()]
        known = {record.codeplex_id for record in reported}
        return reported + [record for record in self.extra_report if record.codeplex_id not in known]

    def write_work_item(self, details: WorkItemDetails) -> None:
        if self.write_failures:
            raise self.write_failures.pop(0)
        self.created.append(details.work_item.id)
        self.states[details.work_item.id] = MigrationState.MIGRATED

    def update_work_item(self, details: WorkItemDetails) -> None:
        if self.write_failures:
            raise self.write_failures.pop(0)
        self.updated.append(details.work_item.id)
        self.states[details.work_item.id] = MigrationState.MIGRATED


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def no_sleep() -> Callable[[float], None]:
    return lambda _seconds: None
