"""
CodePlex to GitHub Migration Tool

Migrates CodePlex work items to GitHub issues. Runs are idempotent: work
items already migrated are skipped, interrupted ones are completed.
"""

from __future__ import annotations

from .cli import main
from .exceptions import MigrationError, TransientRequestError, WorkItemIdentificationError
from .migrator import MigrationResult, WorkItemMigrator
from .models import MigrationState
from .rate_limiter import SlidingWindowRateLimiter
from .retry import run_with_retry
from .settings import UNBOUNDED, MigrationSettings

# Package version
__version__ = "0.1.0"

__all__ = [
    "UNBOUNDED",
    "MigrationError",
    "MigrationResult",
    "MigrationSettings",
    "MigrationState",
    "SlidingWindowRateLimiter",
    "TransientRequestError",
    "WorkItemIdentificationError",
    "WorkItemMigrator",
    "main",
    "run_with_retry",
]
