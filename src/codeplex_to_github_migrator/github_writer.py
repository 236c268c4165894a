"""
GitHub destination: reports already migrated work items and writes new ones.

Every migrated issue carries a CodePlex work item id marker in its body and
one of two labels:

- CodePlexMigrationInitiated: the issue was created but its comments, labels
  or state may be incomplete. The next run updates it.
- CodePlexMigrated: the issue is complete and is never touched again.

The migrated label is applied by the very last request of a write or update,
so an interrupted write always leaves the issue marked as initiated.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Final, TypeVar

import requests
from github import Github, GithubException

from .exceptions import MigrationError, TransientRequestError, WorkItemIdentificationError
from .models import MigratedWorkItem, MigrationState
from .rate_limiter import SlidingWindowRateLimiter
from .text_utils import (
    MIGRATED_LABEL,
    MIGRATION_INITIATED_LABEL,
    build_comments,
    build_issue_body,
    build_labels,
    extract_work_item_id,
    finalize_labels,
    format_work_item_id,
)

if TYPE_CHECKING:
    from github.Issue import Issue
    from github.PaginatedList import PaginatedList
    from github.Repository import Repository

    from .models import WorkItemDetails

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")

# GitHub secondary rate limits apply to content-creating requests; stay well below them
DEFAULT_MAX_REQUESTS_PER_INTERVAL: Final[int] = 5
DEFAULT_INTERVAL: Final[dt.timedelta] = dt.timedelta(minutes=1)

_VALIDATION_FAILED_STATUS: Final[int] = 422


def _error_message(data: Any) -> str | None:
    """Return the first error message of a GitHub validation error payload."""
    if not isinstance(data, dict):
        return None
    errors = data.get("errors") or []
    if errors and isinstance(errors[0], dict):
        return errors[0].get("message")
    return None


class GitHubIssueReaderWriter:
    """Work item destination backed by the issues of a GitHub repository."""

    def __init__(
        self,
        client: Github,
        repo_path: str,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ) -> None:
        """Initialize the destination.

        Args:
            client: Authenticated PyGithub client
            repo_path: Repository path in the form owner/repository
            rate_limiter: Limiter every GitHub request is admitted through.
                Defaults to 5 requests per minute.
        """
        if client is None:
            msg = "client must not be None"
            raise ValueError(msg)

        repo_path = (repo_path or "").strip()
        owner, _, repo_name = repo_path.partition("/")
        if not owner or not repo_name or "/" in repo_name:
            msg = f"Invalid GitHub repository path '{repo_path}'. Expected format: 'owner/repository'"
            raise ValueError(msg)

        self._client: Github = client
        self.repo_path: str = repo_path
        self._rate_limiter: SlidingWindowRateLimiter = rate_limiter or SlidingWindowRateLimiter(
            DEFAULT_MAX_REQUESTS_PER_INTERVAL, DEFAULT_INTERVAL
        )
        self._repo: Repository | None = None
        # Issues created by this writer whose write has not completed yet, by work item id
        self._unfinished_issues: dict[int, Issue] = {}

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = self._call(lambda: self._client.get_repo(self.repo_path))
        return self._repo

    def get_migrated_work_items(self) -> list[MigratedWorkItem]:
        """Find all issues carrying a migration label and read their CodePlex ids."""
        migrated = [
            MigratedWorkItem(work_item_id, MigrationState.MIGRATED)
            for work_item_id in self._get_work_item_ids_by_label(MIGRATED_LABEL)
        ]
        partially_migrated = [
            MigratedWorkItem(work_item_id, MigrationState.PARTIALLY_MIGRATED)
            for work_item_id in self._get_work_item_ids_by_label(MIGRATION_INITIATED_LABEL)
        ]
        logger.debug(
            f"Found {len(migrated)} migrated and {len(partially_migrated)} partially migrated work items "
            f"in {self.repo_path}"
        )
        return migrated + partially_migrated

    def write_work_item(self, details: WorkItemDetails) -> None:
        """Create a GitHub issue for the work item, then add comments and finalize it.

        If an earlier call already created the issue but failed afterwards, that
        issue is rewritten instead of creating a second one.
        """
        work_item = details.work_item
        issue = self._unfinished_issues.get(work_item.id)
        if issue is not None:
            logger.debug(f"Resuming write of work item {work_item.id} on issue #{issue.number}")
            self._rewrite_issue(issue, details)
        else:
            labels = build_labels(work_item)
            body = build_issue_body(work_item, details.file_attachments)

            issue = self._call(lambda: self.repo.create_issue(title=work_item.summary, body=body, labels=labels))
            self._unfinished_issues[work_item.id] = issue
            logger.debug(f"Created issue #{issue.number} for work item {work_item.id}")

            self._finish_issue(issue, details, labels)

        del self._unfinished_issues[work_item.id]

    def update_work_item(self, details: WorkItemDetails) -> None:
        """Redo the issue of a work item whose previous write did not complete.

        Title, body and labels are rewritten first, then all comments are
        deleted and recreated, and finally the issue is marked as migrated.
        """
        self._rewrite_issue(self._find_issue(details.work_item.id), details)

    def _rewrite_issue(self, issue: Issue, details: WorkItemDetails) -> None:
        work_item = details.work_item
        labels = build_labels(work_item)
        body = build_issue_body(work_item, details.file_attachments)

        self._call(lambda: issue.edit(title=work_item.summary, body=body, labels=labels))
        logger.debug(f"Updated issue #{issue.number} for work item {work_item.id}")

        self._delete_all_comments(issue)
        self._finish_issue(issue, details, labels)

    def _finish_issue(self, issue: Issue, details: WorkItemDetails, labels: list[str]) -> None:
        for comment in build_comments(details):
            self._call(lambda comment=comment: issue.create_comment(comment))

        edit_kwargs: dict[str, Any] = {"labels": finalize_labels(labels)}
        if details.work_item.is_closed:
            edit_kwargs["state"] = "closed"
        self._call(lambda: issue.edit(**edit_kwargs))

    def _delete_all_comments(self, issue: Issue) -> None:
        comments = self._get_all_pages(issue.get_comments())
        for comment in comments:
            self._call(comment.delete)
        logger.debug(f"Deleted {len(comments)} comments from issue #{issue.number}")

    def _find_issue(self, work_item_id: int) -> Issue:
        """Find the single issue whose body carries the work item's id marker."""
        marker = format_work_item_id(work_item_id)
        query = f'repo:{self.repo_path} is:issue in:body "{marker}"'
        # Search matching is fuzzy, keep only exact marker matches
        found = self._get_all_pages(self._client.search_issues(query), search=True)
        issues = [issue for issue in found if marker in (issue.body or "")]

        if not issues:
            msg = f"No issue found in GitHub repository {self.repo_path} for CodePlex work item {work_item_id}"
            raise WorkItemIdentificationError(msg)
        if len(issues) > 1:
            msg = f"Multiple issues found in GitHub repository {self.repo_path} for CodePlex work item {work_item_id}"
            raise WorkItemIdentificationError(msg)
        return issues[0]

    def _get_work_item_ids_by_label(self, label: str) -> list[int]:
        query = f'repo:{self.repo_path} is:issue label:"{label}"'
        issues = self._get_all_pages(
            self._client.search_issues(query, sort="created", order="asc"), search=True
        )

        work_item_ids = []
        for issue in issues:
            try:
                work_item_ids.append(extract_work_item_id(issue.body))
            except WorkItemIdentificationError as e:
                msg = f"Error extracting CodePlex work item ID from GitHub issue #{issue.number}: {e}"
                raise WorkItemIdentificationError(msg) from e
        return work_item_ids

    def _get_all_pages(self, paginated: PaginatedList[T], *, search: bool = False) -> list[T]:
        """Fetch a paginated list page by page, admitting each request through the limiter.

        Paging stops at a short page. Search results also carry their total
        count with every page, so a search stops as soon as it is reached.
        """
        per_page = self._client.per_page
        items: list[T] = []
        page_number = 0
        while True:
            page = self._call(lambda page_number=page_number: paginated.get_page(page_number))
            items.extend(page)
            if len(page) < per_page or (search and len(items) >= paginated.totalCount):
                return items
            page_number += 1

    def _call(self, operation: Callable[[], T]) -> T:
        """Run one GitHub request through the rate limiter and classify its failures."""
        self._rate_limiter.acquire()
        try:
            return operation()
        except (requests.ConnectionError, requests.Timeout) as e:
            msg = f"GitHub request failed: {e}"
            raise TransientRequestError(msg) from e
        except GithubException as e:
            if (e.status or 0) >= 500:
                msg = f"GitHub request failed with status {e.status}: {e}"
                raise TransientRequestError(msg) from e
            message = _error_message(e.data)
            if e.status == _VALIDATION_FAILED_STATUS and message:
                raise WorkItemIdentificationError(message) from e
            msg = f"GitHub request failed with status {e.status}: {e}"
            raise MigrationError(msg) from e
