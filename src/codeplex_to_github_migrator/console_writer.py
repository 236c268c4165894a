"""Dry-run destination that prints work items instead of writing them to GitHub."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import MigratedWorkItem, WorkItemDetails


class ConsoleWorkItemWriter:
    """Work item destination writing to stdout.

    Nothing is ever reported as migrated, so every run prints every work item.
    """

    def get_migrated_work_items(self) -> list[MigratedWorkItem]:
        return []

    def write_work_item(self, details: WorkItemDetails) -> None:
        if details is None or details.work_item is None:
            msg = "details and details.work_item must not be None"
            raise ValueError(msg)

        work_item = details.work_item
        print(f"{work_item.id}\n{work_item.summary}\n{work_item.plain_description}\n")

    def update_work_item(self, details: WorkItemDetails) -> None:
        # Nothing to update on a console
        self.write_work_item(details)
