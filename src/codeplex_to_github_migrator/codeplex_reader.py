"""
Read work items from the CodePlex issues REST API.

Endpoints:
    .../project/api/issues               list of issues, paged
        start=#         offset into the list
        showClosed=bool whether closed issues are included (default true)
    .../project/api/issues/{id}          details of a single issue
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final

import requests

from .exceptions import TransientRequestError
from .models import WorkItemDetails, WorkItemSummary

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_ISSUES_URL_TEMPLATE: Final[str] = "https://{project}.codeplex.com/project/api/issues"
_ISSUE_DETAILS_URL_TEMPLATE: Final[str] = "https://{project}.codeplex.com/project/api/issues/{work_item_id}"
_REQUEST_TIMEOUT_SECONDS: Final[int] = 60


class CodePlexWorkItemReader:
    """Work item source backed by the CodePlex REST API."""

    def __init__(
        self,
        project: str,
        *,
        include_closed_work_items: bool = True,
        session: requests.Session | None = None,
    ) -> None:
        if not project or not project.strip():
            msg = "CodePlex project name must not be empty"
            raise ValueError(msg)

        self.project: str = project.strip()
        self.include_closed_work_items: bool = include_closed_work_items
        self._session: requests.Session = session or requests.Session()

    def get_work_items(self, include_predicate: Callable[[int], bool]) -> list[WorkItemSummary]:
        """Return all work item summaries accepted by the predicate, in CodePlex order.

        All pages are downloaded before the predicate is applied.
        """
        if include_predicate is None:
            msg = "include_predicate must not be None"
            raise ValueError(msg)

        url = _ISSUES_URL_TEMPLATE.format(project=self.project)
        show_closed = str(self.include_closed_work_items).lower()

        summaries: list[WorkItemSummary] = []
        page = self._download_json(url, params={"showClosed": show_closed})
        total_items = int(page.get("TotalItemCount") or 0)
        summaries.extend(WorkItemSummary.from_json(item) for item in page.get("List") or [])

        while len(summaries) < total_items:
            page = self._download_json(url, params={"start": len(summaries), "showClosed": show_closed})
            items = page.get("List") or []
            if not items:
                logger.warning(
                    f"CodePlex reported {total_items} work items but stopped returning them after {len(summaries)}"
                )
                break
            summaries.extend(WorkItemSummary.from_json(item) for item in items)

        logger.debug(f"Retrieved {len(summaries)} work item summaries from CodePlex project {self.project}")
        return [summary for summary in summaries if include_predicate(summary.id)]

    def get_work_item(self, summary: WorkItemSummary) -> WorkItemDetails:
        """Download the details of a single work item.

        Raises:
            TransientRequestError: On request failures or unparsable responses
        """
        if summary is None:
            msg = "summary must not be None"
            raise ValueError(msg)

        url = _ISSUE_DETAILS_URL_TEMPLATE.format(project=self.project, work_item_id=summary.id)
        return WorkItemDetails.from_json(self._download_json(url))

    def _download_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self._session.get(url, params=params, timeout=_REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            # Includes JSONDecodeError raised by response.json()
            msg = f"Failed to get {url}: {e}"
            raise TransientRequestError(msg) from e

        if not isinstance(data, dict):
            msg = f"Unexpected response from {url}: expected a JSON object"
            raise TransientRequestError(msg)
        return data
