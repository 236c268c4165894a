"""Data models for work items migrated from CodePlex to GitHub.

The CodePlex REST API returns PascalCase JSON. The ``from_json`` constructors
translate those payloads into the dataclasses below, which are what the rest
of the tool works with.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import TransientRequestError

CLOSED_STATUS = "Closed"


class MigrationState(Enum):
    """How far a CodePlex work item has progressed towards GitHub."""

    NONE = "none"
    PARTIALLY_MIGRATED = "partially_migrated"
    MIGRATED = "migrated"


def _name_of(value: dict[str, Any] | None, key: str = "Name") -> str | None:
    """Return the name of a nested CodePlex lookup object (status, type, ...)."""
    if not value:
        return None
    return value.get(key)


def _parse_date(value: str | None) -> dt.datetime | None:
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class WorkItemSummary:
    """Lightweight id and title of a CodePlex work item, fetched in bulk."""

    id: int
    title: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> WorkItemSummary:
        return cls(id=int(data["Id"]), title=data.get("Title") or "")


@dataclass
class WorkItem:
    """A CodePlex work item with the fields the migration carries over."""

    id: int
    summary: str
    plain_description: str = ""
    assigned_to: str | None = None
    closed_by: str | None = None
    closed_comment: str | None = None
    vote_count: int = 0
    planned_for_release: str | None = None
    affected_component: str | None = None  # Display name
    priority: str | None = None
    status: str | None = None
    reason_closed: str | None = None
    type: str | None = None

    @property
    def is_closed(self) -> bool:
        return (self.status or "").lower() == CLOSED_STATUS.lower()

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> WorkItem:
        return cls(
            id=int(data["Id"]),
            summary=data.get("Summary") or "",
            plain_description=data.get("PlainDescription") or "",
            assigned_to=data.get("AssignedTo"),
            closed_by=data.get("ClosedBy"),
            closed_comment=data.get("ClosedComment"),
            vote_count=int(data.get("VoteCount") or 0),
            planned_for_release=data.get("PlannedForRelease"),
            affected_component=_name_of(data.get("AffectedComponent"), "DisplayName"),
            priority=_name_of(data.get("Priority")),
            status=_name_of(data.get("Status")),
            reason_closed=_name_of(data.get("ReasonClosed")),
            type=_name_of(data.get("Type")),
        )


@dataclass
class WorkItemComment:
    """A comment posted on a CodePlex work item."""

    id: int
    work_item_id: int
    message: str
    posted_by: str | None = None
    posted_date: dt.datetime | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> WorkItemComment:
        return cls(
            id=int(data.get("Id") or 0),
            work_item_id=int(data.get("WorkItemId") or 0),
            message=data.get("Message") or "",
            posted_by=data.get("PostedBy"),
            posted_date=_parse_date(data.get("PostedDate")),
        )


@dataclass
class WorkItemFileAttachment:
    """A file attached to a CodePlex work item. Only linked, never re-uploaded."""

    file_id: int
    file_name: str
    download_url: str
    work_item_id: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> WorkItemFileAttachment:
        return cls(
            file_id=int(data.get("FileId") or 0),
            file_name=data.get("FileName") or "",
            download_url=data.get("DownloadUrl") or "",
            work_item_id=int(data.get("WorkItemId") or 0),
        )


@dataclass
class WorkItemDetails:
    """Full payload of one work item: the item itself plus comments and attachments."""

    work_item: WorkItem
    comments: list[WorkItemComment] = field(default_factory=list)
    file_attachments: list[WorkItemFileAttachment] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> WorkItemDetails:
        """Build details from a CodePlex issue detail payload.

        Raises:
            TransientRequestError: If the payload does not have the expected shape.
                CodePlex occasionally returns truncated responses, so this is
                treated like a failed request and may be retried.
        """
        try:
            return cls(
                work_item=WorkItem.from_json(data["WorkItem"]),
                comments=[WorkItemComment.from_json(c) for c in data.get("Comments") or []],
                file_attachments=[WorkItemFileAttachment.from_json(a) for a in data.get("FileAttachments") or []],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            msg = f"Malformed work item payload: {e}"
            raise TransientRequestError(msg) from e


@dataclass(frozen=True)
class MigratedWorkItem:
    """A work item the destination already knows about, with its migration state."""

    codeplex_id: int
    state: MigrationState
