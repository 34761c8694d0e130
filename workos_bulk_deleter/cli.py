"""Command line entry point: ``workos-bulk-delete [options] <date> [<end-date>]``."""

import argparse
import logging
import sys
from typing import List, Optional

from .client import WorkOSClient
from .config import API_REQUESTS_PER_SECOND_LIMIT, Settings
from .deleter import BulkDeleter
from .exceptions import ConfigurationError, RunAbortedError
from .executor import RetryingExecutor
from .fetcher import PaginatedFetcher
from .filters import DateFilter
from .logging_setup import setup_logging
from .models import DeletionResults, RunResult
from .orchestrator import BulkDeletionRun
from .rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

RULE = '═══════════════════════════════════════════════════════════'
MAX_LISTED_FAILURES = 10


class _ArgumentParser(argparse.ArgumentParser):
    """Exits with status 1 on usage errors, like every other invalid input."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"❌ Error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="workos-bulk-delete",
        description="Delete WorkOS organizations (and optionally users) created on a date or date range",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  WORKOS_API_KEY              Your WorkOS API key (required)
  CONCURRENCY                 Max concurrent deletions (default: 40)
  MAX_REQUESTS_PER_SECOND     Max API requests per second (default: 40, limit: 50)

Examples:
  # Delete organizations created on a single day
  workos-bulk-delete 2005-12-17

  # Delete organizations and users created in a range (inclusive)
  workos-bulk-delete --users 2005-12-17 2005-12-25

  # Show what would be deleted without deleting anything
  workos-bulk-delete --dry-run 2005-12-17
        """
    )

    parser.add_argument('dates', nargs='+', metavar='DATE',
                        help='Single date, or start and end date (inclusive), in YYYY-MM-DD format')
    parser.add_argument('--users', action='store_true', help='Also delete users created on the specified date(s)')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be deleted without actually deleting')
    parser.add_argument('--debug', action='store_true', help='Show detailed debug information')
    parser.add_argument('--concurrency', type=int, help='Max concurrent deletions (overrides CONCURRENCY)')
    parser.add_argument('--rate-limit', type=int, help='Max API requests per second (overrides MAX_REQUESTS_PER_SECOND)')
    parser.add_argument('--log-dir', default='logs', help='Directory for log files (default: logs)')
    return parser


def print_banner(settings: Settings, date_filter: DateFilter, include_users: bool, dry_run: bool) -> None:
    target_types = 'organizations and users' if include_users else 'organizations'
    target = date_filter.describe()
    if not date_filter.is_single_day:
        target += ' (inclusive)'

    print(f"\n{RULE}")
    print('            WorkOS Bulk Deletion                          ')
    print(f"{RULE}\n")
    print(f"Target: Delete {target_types} created {target}")
    print(f"Concurrency: {settings.concurrency} parallel operations")
    print(f"Rate limit: {settings.requests_per_second} requests/second (API limit: {API_REQUESTS_PER_SECOND_LIMIT}/s)")
    print(f"Throughput: ~{settings.requests_per_second * 60} deletions/minute")
    if dry_run:
        print('Mode: DRY RUN (no actual deletions)')
    print('')


def _print_results(label: str, results: DeletionResults) -> None:
    print(f"{label}:")
    print(f"  ✓ Successfully deleted: {len(results.successful)}")
    print(f"  ❌ Failed to delete:    {len(results.failed)}")
    print(f"  📊 Total processed:     {results.total}\n")


def _print_failures(kind: str, results: DeletionResults) -> None:
    if not results.failed:
        return
    print(f"Failed {kind} deletions:")
    for i, outcome in enumerate(results.failed[:MAX_LISTED_FAILURES], start=1):
        print(f"   {i}. {outcome.name} ({outcome.entity_id})")
        print(f"      Error: {outcome.error}")
    if len(results.failed) > MAX_LISTED_FAILURES:
        print(f"   ... and {len(results.failed) - MAX_LISTED_FAILURES} more failures")
    print('')


def print_summary(result: RunResult) -> None:
    """Print final summary."""
    print(f"⏱️  Total execution time: {result.elapsed_seconds:.1f}s\n")
    print(RULE)
    print('                    DELETION SUMMARY                        ')
    print(f"{RULE}\n")

    if result.dry_run:
        print('🔍 DRY RUN MODE - No actual deletions were performed\n')

    _print_results('Organizations', result.organizations)
    if result.users is not None:
        _print_results('Users', result.users)

    _print_failures('organization', result.organizations)
    if result.users is not None:
        _print_failures('user', result.users)

    print(f"{RULE}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run the bulk deletion. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        date_filter = DateFilter.from_args(args.dates)
        setup_logging(args.debug, args.log_dir)
        settings = Settings.from_env().with_overrides(args.concurrency, args.rate_limit)
        rate_limiter = TokenBucketRateLimiter(settings.requests_per_second)
    except ConfigurationError as e:
        print(f"❌ Error: {e}\n", file=sys.stderr)
        return 1

    print_banner(settings, date_filter, args.users, args.dry_run)

    client = WorkOSClient(settings.api_key, settings.base_url, settings.timeout)
    executor = RetryingExecutor(rate_limiter)
    run = BulkDeletionRun(
        client=client,
        fetcher=PaginatedFetcher(executor),
        deleter=BulkDeleter(executor, settings.concurrency, dry_run=args.dry_run),
        date_filter=date_filter,
        include_users=args.users,
        debug=args.debug,
    )

    try:
        result = run.run()
    except RunAbortedError as e:
        print(f"\n❌ Run failed during {e.stage.value}: {e.cause}", file=sys.stderr)
        logger.debug("Run aborted", exc_info=e.cause)
        print_summary(e.partial_result)
        return 1
    except KeyboardInterrupt:
        print("\n❌ Interrupted. Deletions already sent to WorkOS are not undone.", file=sys.stderr)
        return 1
    finally:
        client.close()

    print_summary(result)
    if result.total_failed:
        logger.info(f"Run finished with {result.total_failed} failed deletion(s)")
    else:
        logger.info("Run finished with no failures")
    return result.exit_code

