"""
Custom exception classes for the CodePlex to GitHub migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class TransientRequestError(MigrationError):
    """Raised when a remote request likely failed because of network conditions.

    This is the only failure category the retry policy retries.
    """


class WorkItemIdentificationError(MigrationError):
    """Raised when CodePlex work item ids cannot be correlated with GitHub issues."""
