"""
Retry policy for operations that may fail because of transient request errors.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from collections.abc import Callable
from typing import TypeVar

from .exceptions import TransientRequestError
from .settings import to_seconds

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(
    operation: Callable[[], T],
    max_retry_count: int,
    retry_delay: float | dt.timedelta,
    *,
    operation_name: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run an operation, retrying it on TransientRequestError.

    The operation is attempted at most ``max_retry_count + 1`` times. Any
    exception other than TransientRequestError propagates on the first
    occurrence, and the last TransientRequestError propagates once the retry
    budget is used up.

    Args:
        operation: Callable performing the operation
        max_retry_count: Number of retries after the initial attempt (>= 0)
        retry_delay: Delay between attempts, in seconds or as a timedelta (>= 0)
        operation_name: Name for logging purposes
        sleep: Function used to wait between attempts

    Returns:
        Result of the operation
    """
    delay_seconds = to_seconds(retry_delay)
    if max_retry_count < 0:
        msg = f"max_retry_count must be >= 0, got {max_retry_count}"
        raise ValueError(msg)
    if delay_seconds < 0:
        msg = f"retry_delay must be >= 0, got {delay_seconds}"
        raise ValueError(msg)

    retry_count = 0
    while True:
        try:
            return operation()
        except TransientRequestError as e:
            if retry_count >= max_retry_count:
                raise
            retry_count += 1
            logger.warning(
                f"Request failed for {operation_name} (retry {retry_count}/{max_retry_count}), "
                f"retrying in {delay_seconds:g}s: {e}"
            )
            sleep(delay_seconds)
