"""Build GitHub issue bodies, comments and labels from CodePlex work items."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from .exceptions import WorkItemIdentificationError

if TYPE_CHECKING:
    from .models import WorkItem, WorkItemDetails, WorkItemFileAttachment

# Labels managed by the migration
MIGRATION_INITIATED_LABEL: Final[str] = "CodePlexMigrationInitiated"
MIGRATED_LABEL: Final[str] = "CodePlexMigrated"

BUG_LABEL: Final[str] = "bug"
ENHANCEMENT_LABEL: Final[str] = "enhancement"
DUPLICATE_LABEL: Final[str] = "duplicate"
IMPACT_LABEL_PREFIX: Final[str] = "Impact"

# CodePlex vocabulary
UNASSIGNED: Final[str] = "unassigned"
UNKNOWN_USER: Final[str] = "UnknownUser"

WORK_ITEM_ID_PROPERTY: Final[str] = "CodePlex Work Item ID"
_WORK_ITEM_ID_PATTERN: Final[re.Pattern[str]] = re.compile(rf"{WORK_ITEM_ID_PROPERTY}: '(?P<id>\d+)'")


def _property(name: str, value: object) -> str:
    return f"{name}: '{value}'"


def format_work_item_id(work_item_id: int) -> str:
    """Format the marker embedded in every migrated issue body.

    The marker is what ties a GitHub issue back to its CodePlex work item.
    """
    return _property(WORK_ITEM_ID_PROPERTY, work_item_id)


def extract_work_item_id(issue_body: str | None) -> int:
    """Return the CodePlex work item id embedded in a GitHub issue body.

    Raises:
        WorkItemIdentificationError: If the body holds no valid marker
    """
    match = _WORK_ITEM_ID_PATTERN.search(issue_body or "")
    if match is None:
        msg = "CodePlex work item ID not found in GitHub issue body"
        raise WorkItemIdentificationError(msg)

    id_string = match.group("id")
    work_item_id = int(id_string)
    if work_item_id > 2**31 - 1:
        msg = f"Invalid CodePlex work item ID: {id_string}"
        raise WorkItemIdentificationError(msg)
    return work_item_id


def build_issue_body(work_item: WorkItem, attachments: list[WorkItemFileAttachment] | None = None) -> str:
    """Build the GitHub issue body: description, attachment links and migration details."""
    body = f"{work_item.plain_description}\n"

    if attachments:
        body += "\n#### Attachments\n"
        for attachment in attachments:
            body += f"[{attachment.file_name}]({attachment.download_url})\n"

    body += "\n#### Migrated CodePlex Work Item Details\n"
    body += f"{format_work_item_id(work_item.id)}\n"
    if work_item.assigned_to:
        body += f"{_property('Assigned to', work_item.assigned_to)}\n"
    body += f"{_property('Vote count', work_item.vote_count)}\n"
    return body


def build_comments(details: WorkItemDetails) -> list[str]:
    """Build the GitHub comments for a work item, oldest first, closing comment last."""
    comments = []
    for comment in details.comments:
        posted_by = comment.posted_by or UNKNOWN_USER
        posted_date = comment.posted_date.date().isoformat() if comment.posted_date else "unknown date"
        comments.append(f"{posted_by} wrote {posted_date}:\n{comment.message}\n")

    closing_comment = build_closing_comment(details.work_item)
    if closing_comment:
        comments.append(closing_comment)
    return comments


def build_closing_comment(work_item: WorkItem) -> str:
    """Build the comment describing how a work item was closed.

    Returns an empty string unless closer, closing comment and reason are all known.
    """
    if not (work_item.closed_comment and work_item.closed_by and work_item.reason_closed):
        return ""

    comment = f"**Issue closed by _{work_item.closed_by}_ with comment**\n{work_item.closed_comment}\n"
    if work_item.reason_closed.lower() != UNASSIGNED:
        comment += f"\n**Reason closed**\n{work_item.reason_closed}\n"
    return comment


def build_labels(work_item: WorkItem) -> list[str]:
    """Build the labels for a newly written or updated issue.

    The migration-initiated label is always first; it is swapped for the
    migrated label once the issue has been written completely.
    """
    labels = [MIGRATION_INITIATED_LABEL]

    if work_item.planned_for_release:
        labels.append(work_item.planned_for_release)
    if work_item.affected_component:
        labels.append(work_item.affected_component)
    if work_item.priority:
        labels.append(f"{IMPACT_LABEL_PREFIX}: {work_item.priority}")
    if (work_item.reason_closed or "").lower() == DUPLICATE_LABEL:
        labels.append(DUPLICATE_LABEL)

    issue_type = work_item.type
    if issue_type:
        # Feature -> enhancement, Issue -> bug, anything else verbatim unless unassigned
        if issue_type.lower() == "feature":
            labels.append(ENHANCEMENT_LABEL)
        elif issue_type.lower() == "issue":
            labels.append(BUG_LABEL)
        elif issue_type.lower() != UNASSIGNED:
            labels.append(issue_type)

    return labels


def finalize_labels(labels: list[str]) -> list[str]:
    """Replace the migration-initiated label with the migrated label."""
    return [label for label in labels if label not in (MIGRATION_INITIATED_LABEL, MIGRATED_LABEL)] + [MIGRATED_LABEL]
