"""Protocols defining the contracts for work item sources and destinations.

The migration architecture separates concerns into three components:

1. WorkItemSource: Reads work items from CodePlex
2. WorkItemDestination: Reports what was already migrated and writes issues
3. WorkItemMigrator: Orchestrates the flow and decides what to write

Destinations are expected to raise TransientRequestError for failures that
are worth retrying and any other exception for failures that are not.

Implementations:
    - CodePlexWorkItemReader: CodePlex REST API via requests
    - GitHubIssueReaderWriter: GitHub issues via PyGithub, rate limited
    - ConsoleWorkItemWriter: Dry run output to stdout
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import MigratedWorkItem, WorkItemDetails, WorkItemSummary


class WorkItemSource(Protocol):
    """Protocol for reading work items from the source system."""

    def get_work_items(self, include_predicate: Callable[[int], bool]) -> list[WorkItemSummary]:
        """Return summaries of all work items whose id satisfies the predicate.

        The order of the returned list is the order in which items get migrated.
        """
        ...

    def get_work_item(self, summary: WorkItemSummary) -> WorkItemDetails:
        """Fetch the full details of a single work item.

        Raises:
            TransientRequestError: On transport failures or unparsable responses
        """
        ...


class MigratedWorkItemReader(Protocol):
    """Protocol for listing work items already present in the destination."""

    def get_migrated_work_items(self) -> list[MigratedWorkItem]:
        """Return one record per work item the destination knows about."""
        ...


class WorkItemWriter(Protocol):
    """Protocol for writing work items to the destination."""

    def write_work_item(self, details: WorkItemDetails) -> None:
        """Create a new destination record for the work item."""
        ...

    def update_work_item(self, details: WorkItemDetails) -> None:
        """Finish a work item whose previous write was interrupted."""
        ...


class WorkItemDestination(MigratedWorkItemReader, WorkItemWriter, Protocol):
    """A destination that can both report migrated items and write new ones."""
