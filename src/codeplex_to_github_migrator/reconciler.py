"""Reconcile what the destination reports as migrated with the user's skip list."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import WorkItemIdentificationError
from .models import MigrationState

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import MigratedWorkItem


def reconcile(
    migrated_work_items: Iterable[MigratedWorkItem] | None,
    skip_list: Iterable[int] | None,
) -> dict[int, MigrationState]:
    """Build the per-run map from CodePlex work item id to migration state.

    Skipped ids are forced to MIGRATED, overriding whatever the destination
    reported, so they are neither fetched nor written.

    Raises:
        WorkItemIdentificationError: If the destination reports the same work item twice
    """
    states: dict[int, MigrationState] = {}

    for record in migrated_work_items or ():
        if record.codeplex_id in states:
            msg = f"Encountered collision: more than one GitHub issue found for CodePlex work item {record.codeplex_id}"
            raise WorkItemIdentificationError(msg)
        states[record.codeplex_id] = record.state

    for work_item_id in skip_list or ():
        states[work_item_id] = MigrationState.MIGRATED

    return states


def state_of(states: dict[int, MigrationState], work_item_id: int) -> MigrationState:
    return states.get(work_item_id, MigrationState.NONE)
