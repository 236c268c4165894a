"""
Migration settings consumed by the work item migrator.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Final

# Sentinel for max_items_to_migrate meaning "migrate everything"
UNBOUNDED: Final[int] = -1

DEFAULT_MAX_RETRY_COUNT: Final[int] = 3
DEFAULT_RETRY_DELAY_SECONDS: Final[float] = 3.0


def to_seconds(value: float | dt.timedelta) -> float:
    """Normalize a duration given as seconds or timedelta to seconds."""
    if isinstance(value, dt.timedelta):
        return value.total_seconds()
    return float(value)


@dataclass
class MigrationSettings:
    """Knobs controlling retries, skipped items and how many items get migrated."""

    max_retry_count: int = DEFAULT_MAX_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    work_items_to_skip: frozenset[int] = field(default_factory=frozenset)
    max_items_to_migrate: int = UNBOUNDED

    def __post_init__(self) -> None:
        self.retry_delay = to_seconds(self.retry_delay)
        self.work_items_to_skip = frozenset(self.work_items_to_skip or ())

        if self.max_retry_count < 0:
            msg = f"max_retry_count must be >= 0, got {self.max_retry_count}"
            raise ValueError(msg)
        if self.retry_delay < 0:
            msg = f"retry_delay must be >= 0, got {self.retry_delay}"
            raise ValueError(msg)
        if self.max_items_to_migrate < UNBOUNDED:
            msg = (
                f"max_items_to_migrate must be a non-negative number or {UNBOUNDED} for all items, "
                f"got {self.max_items_to_migrate}"
            )
            raise ValueError(msg)

    @property
    def is_unbounded(self) -> bool:
        return self.max_items_to_migrate == UNBOUNDED

