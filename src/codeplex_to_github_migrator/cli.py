"""
Command-line interface for the CodePlex to GitHub migration tool.
"""

from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys

from . import github_utils as ghu
from .codeplex_reader import CodePlexWorkItemReader
from .console_writer import ConsoleWorkItemWriter
from .github_writer import DEFAULT_MAX_REQUESTS_PER_INTERVAL, GitHubIssueReaderWriter
from .migrator import WorkItemMigrator
from .protocols import WorkItemDestination
from .rate_limiter import SlidingWindowRateLimiter
from .settings import UNBOUNDED, MigrationSettings
from .utils import DEFAULT_LOG_FILE, parse_id_list, setup_logging

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Migrate CodePlex work items to GitHub issues")

    _ = parser.add_argument("--project", "-p", required=True, help="Name of the CodePlex project to migrate")
    _ = parser.add_argument(
        "--github-repo", "-r", help="GitHub repository path (owner/repo) receiving the issues"
    )

    _ = parser.add_argument(
        "--max-items",
        "-m",
        type=int,
        default=UNBOUNDED,
        help=f"Maximum number of work items to migrate ({UNBOUNDED} for all, default)",
    )
    _ = parser.add_argument(
        "--skip",
        "-s",
        type=parse_id_list,
        default=frozenset(),
        help="Comma-separated list of work item IDs to exclude from migration",
    )
    _ = parser.add_argument(
        "--no-closed", action="store_true", help="Do not migrate closed work items"
    )
    _ = parser.add_argument(
        "--what-if",
        action="store_true",
        help="Only read work items and print them to the console instead of writing to GitHub",
    )
    _ = parser.add_argument(
        "--requests-per-minute",
        type=int,
        default=DEFAULT_MAX_REQUESTS_PER_INTERVAL,
        help=f"Maximum number of GitHub requests per minute (default: {DEFAULT_MAX_REQUESTS_PER_INTERVAL})",
    )

    _ = parser.add_argument(
        "--github-pass-token", help="Path for GitHub token in pass utility (default: github/cli/token)"
    )
    _ = parser.add_argument("--log-file", "-l", default=DEFAULT_LOG_FILE, help="Path of the log file")
    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase console verbosity (-v info, -vv debug)"
    )

    args = parser.parse_args(argv)
    if not args.what_if and not args.github_repo:
        parser.error("--github-repo is required unless --what-if is given")
    return args


def _create_destination(args: argparse.Namespace) -> WorkItemDestination:
    if args.what_if:
        return ConsoleWorkItemWriter()

    token = ghu.get_token(args.github_pass_token)
    rate_limiter = SlidingWindowRateLimiter(args.requests_per_minute, dt.timedelta(minutes=1))
    return GitHubIssueReaderWriter(ghu.get_client(token), args.github_repo, rate_limiter)


def main() -> None:
    """Main entry point."""
    args = parse_arguments()
    setup_logging(verbosity=args.verbose, log_file=args.log_file)

    try:
        settings = MigrationSettings(work_items_to_skip=args.skip, max_items_to_migrate=args.max_items)
        source = CodePlexWorkItemReader(args.project, include_closed_work_items=not args.no_closed)
        migrator = WorkItemMigrator(source, _create_destination(args), settings)
        result = migrator.migrate()
    except Exception:
        logger.debug("Failure details", exc_info=True)
        logger.error(f"Unrecoverable error, migration aborted. See {args.log_file} for details.")
        sys.exit(1)

    print(f"Created {result.created} and updated {result.updated} GitHub issues")
    sys.exit(0)
