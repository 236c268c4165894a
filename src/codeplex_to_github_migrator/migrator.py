"""Migration orchestrator that moves CodePlex work items to a destination.

Migration Flow
--------------
A run is a single sequential pass and is safe to repeat after a failure:

1. Ask the destination which work items it already has and in which state
   (MIGRATED or PARTIALLY_MIGRATED), and fold the user's skip list into that
   report as MIGRATED entries. Two destination records for the same work item
   abort the run.
2. Fetch work item summaries from the source, excluding everything that is
   MIGRATED. Fully migrated items are never fetched again.
3. Cap the candidate list at ``max_items_to_migrate`` (unless unbounded).
4. For each candidate, in source order:
       a. Fetch the full details (retried on transient request errors)
       b. PARTIALLY_MIGRATED items are updated, all others are written
          (retried on transient request errors)

Items are migrated one at a time. Finding an existing destination record
relies on the previous write having completed, so writes must not overlap.

Error Handling
--------------
Transient request errors are retried by run_with_retry for the detail fetch
and the destination write only. Every other failure, or a transient one that
outlived its retries, is logged once and re-raised, ending the run. Items
completed before the failure keep their destination state; a later run picks
up the rest.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from .models import MigrationState
from .reconciler import reconcile, state_of
from .retry import run_with_retry

if TYPE_CHECKING:
    from .models import WorkItemDetails, WorkItemSummary
    from .protocols import WorkItemDestination, WorkItemSource
    from .settings import MigrationSettings

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MigrationResult:
    """Counts of what a migration run did."""

    created: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def migrated(self) -> int:
        return self.created + self.updated


class WorkItemMigrator:
    """Orchestrates migration from a work item source to a destination.

    Usage:
        source = CodePlexWorkItemReader("myproject")
        destination = GitHubIssueReaderWriter(github_client, "owner/repo", rate_limiter)
        WorkItemMigrator(source, destination, MigrationSettings()).migrate()
    """

    _source: WorkItemSource
    _destination: WorkItemDestination

    def __init__(
        self,
        source: WorkItemSource,
        destination: WorkItemDestination,
        settings: MigrationSettings,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the migrator.

        Args:
            source: Source to read work items from
            destination: Destination to write work items to
            settings: Retry, skip and limit settings
            sleep: Function used to wait between retries
        """
        if source is None:
            msg = "source must not be None"
            raise ValueError(msg)
        if destination is None:
            msg = "destination must not be None"
            raise ValueError(msg)
        if settings is None:
            msg = "settings must not be None"
            raise ValueError(msg)

        self._source = source
        self._destination = destination
        self._settings = settings
        self._sleep = sleep

    def migrate(self) -> MigrationResult:
        """Migrate all work items not yet fully present in the destination.

        Returns:
            MigrationResult with the number of created and updated items

        Raises:
            Exception: Whatever aborted the run, after logging it once
        """
        logger.info("Beginning migration of work items")

        try:
            result = self._migrate()
        except Exception as e:
            logger.error(f"Migration failed: {e}")
            raise

        logger.info("Migration completed successfully")
        return result

    def _migrate(self) -> MigrationResult:
        logger.info("Looking up work items that have already been migrated")
        migrated_work_items = self._destination.get_migrated_work_items()
        states = reconcile(migrated_work_items, self._settings.work_items_to_skip)

        logger.info("Looking up work items to migrate")
        candidates = self._source.get_work_items(
            lambda work_item_id: state_of(states, work_item_id) != MigrationState.MIGRATED
        )

        if self._settings.is_unbounded:
            count_to_migrate = len(candidates)
        else:
            count_to_migrate = self._settings.max_items_to_migrate
        work_items_to_migrate = candidates[:count_to_migrate]

        logger.info(f"Starting migration of {count_to_migrate} work items")
        logger.warning("Migration progress will be slow because requests to GitHub are rate limited")

        result = MigrationResult(skipped=len(candidates) - len(work_items_to_migrate))
        for summary in work_items_to_migrate:
            self._migrate_work_item(summary, state_of(states, summary.id), result)
            logger.info(
                f"Successfully migrated work item {summary.id} "
                f"({result.migrated}/{count_to_migrate}): {summary.title}"
            )

        return result

    def _migrate_work_item(self, summary: WorkItemSummary, state: MigrationState, result: MigrationResult) -> None:
        """Fetch one work item and create or finish it in the destination."""
        logger.debug(f"Looking up work item {summary.id}")
        details: WorkItemDetails = self._retry(
            lambda: self._source.get_work_item(summary), f"fetching work item {summary.id}"
        )

        if state == MigrationState.PARTIALLY_MIGRATED:
            logger.debug(f"Updating partially migrated work item {summary.id}")
            self._retry(lambda: self._destination.update_work_item(details), f"updating work item {summary.id}")
            result.updated += 1
        else:
            logger.debug(f"Adding work item {summary.id}")
            self._retry(lambda: self._destination.write_work_item(details), f"writing work item {summary.id}")
            result.created += 1

    def _retry(self, operation: Callable[[], T], operation_name: str) -> T:
        return run_with_retry(
            operation,
            self._settings.max_retry_count,
            self._settings.retry_delay,
            operation_name=operation_name,
            sleep=self._sleep,
        )
